from django.core.management.base import BaseCommand, CommandError

from review_scheduler.errors import StoreUnavailable
from review_scheduler.services.reviews import reconcile


class Command(BaseCommand):
    help = "Rebuild the in-process due-review index from the review store."

    def add_arguments(self, parser):
        parser.add_argument(
            "--owner", default=None, help="Only rebuild entries for this owner id"
        )

    def handle(self, *args, **options):
        owner = options.get("owner")
        try:
            count = reconcile(owner)
        except StoreUnavailable as e:
            raise CommandError(f"Error reconciling due index: {e}") from e

        scope = f"owner {owner}" if owner else "all owners"
        self.stdout.write(
            self.style.SUCCESS(f"Due index rebuilt for {scope}: {count} entries")
        )
