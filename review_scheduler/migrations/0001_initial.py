import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LearnableItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("owner_id", models.CharField(max_length=64)),
                ("item_id", models.CharField(max_length=64)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "unique_together": {("owner_id", "item_id")},
            },
        ),
        migrations.CreateModel(
            name="ReviewSchedule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("owner_id", models.CharField(max_length=64)),
                ("item_id", models.CharField(max_length=64)),
                ("last_taken_at", models.DateTimeField(null=True)),
                ("next_review_at", models.DateTimeField(null=True)),
                ("interval_days", models.PositiveIntegerField(default=0)),
                ("attempt_count", models.PositiveIntegerField(default=0)),
                ("revision", models.PositiveIntegerField(default=0)),
            ],
            options={
                "indexes": [models.Index(fields=["owner_id", "next_review_at"], name="schedule_owner_due_idx")],
                "unique_together": {("owner_id", "item_id")},
            },
        ),
    ]
