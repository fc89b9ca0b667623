from django.db import models
from django.utils import timezone


class LearnableItem(models.Model):
    owner_id = models.CharField(max_length=64)
    item_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = (("owner_id", "item_id"),)


class ReviewSchedule(models.Model):
    owner_id = models.CharField(max_length=64)
    item_id = models.CharField(max_length=64)
    last_taken_at = models.DateTimeField(null=True)   # UTC
    next_review_at = models.DateTimeField(null=True)  # UTC
    interval_days = models.PositiveIntegerField(default=0)
    attempt_count = models.PositiveIntegerField(default=0)
    revision = models.PositiveIntegerField(default=0)

    class Meta:
        unique_together = (("owner_id", "item_id"),)
        indexes = [
            models.Index(fields=["owner_id", "next_review_at"], name="schedule_owner_due_idx"),
        ]
