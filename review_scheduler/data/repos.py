from contextlib import contextmanager
from typing import List, Optional, Protocol

import structlog
from django.db import DatabaseError, IntegrityError, transaction

from ..domain.records import ReviewRecord
from ..errors import StoreUnavailable
from .models import LearnableItem, ReviewSchedule

logger = structlog.get_logger()


class ReviewStore(Protocol):
    """Persistence contract the scheduler relies on.

    ``compare_and_swap`` is the only write path for schedules: it must store
    ``record`` only if the stored revision still equals ``expected_revision``
    (0 meaning "no record yet") and report whether it did.
    """

    def load(self, owner_id: str, item_id: str) -> Optional[ReviewRecord]:
        ...

    def compare_and_swap(self, record: ReviewRecord, expected_revision: int) -> bool:
        ...

    def add_item(self, owner_id: str, item_id: str) -> bool:
        ...

    def remove_item(self, owner_id: str, item_id: str) -> bool:
        ...

    def scan(self, owner_id: Optional[str] = None) -> List[ReviewRecord]:
        ...


@contextmanager
def _store_errors(operation):
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.error("store_unavailable", operation=operation, error=str(exc))
        raise StoreUnavailable(f"review store unavailable during {operation}") from exc


def _to_record(row):
    return ReviewRecord(
        owner_id=row.owner_id,
        item_id=row.item_id,
        last_taken_at=row.last_taken_at,
        next_review_at=row.next_review_at,
        interval_days=row.interval_days,
        attempt_count=row.attempt_count,
        revision=row.revision,
    )


class DjangoReviewStore:
    """ReviewStore backed by the Django ORM."""

    def load(self, owner_id, item_id):
        with _store_errors("load"):
            row = ReviewSchedule.objects.filter(owner_id=owner_id, item_id=item_id).first()
        return _to_record(row) if row is not None else None

    def compare_and_swap(self, record, expected_revision):
        with _store_errors("commit"):
            if expected_revision == 0:
                return self._insert(record)
            with transaction.atomic():
                updated = (ReviewSchedule.objects
                           .filter(owner_id=record.owner_id,
                                   item_id=record.item_id,
                                   revision=expected_revision)
                           .update(last_taken_at=record.last_taken_at,
                                   next_review_at=record.next_review_at,
                                   interval_days=record.interval_days,
                                   attempt_count=record.attempt_count,
                                   revision=record.revision))
            return updated == 1

    def _insert(self, record):
        """
        First commit for a pair. A concurrent first commit trips the unique
        constraint, which counts as a lost race rather than a failure.
        """
        try:
            with transaction.atomic():
                LearnableItem.objects.get_or_create(owner_id=record.owner_id, item_id=record.item_id)
                ReviewSchedule.objects.create(
                    owner_id=record.owner_id, item_id=record.item_id,
                    last_taken_at=record.last_taken_at,
                    next_review_at=record.next_review_at,
                    interval_days=record.interval_days,
                    attempt_count=record.attempt_count,
                    revision=record.revision,
                )
        except IntegrityError:
            return False
        return True

    def add_item(self, owner_id, item_id):
        with _store_errors("add_item"):
            _, created = LearnableItem.objects.get_or_create(owner_id=owner_id, item_id=item_id)
        return created

    def remove_item(self, owner_id, item_id):
        with _store_errors("remove_item"):
            with transaction.atomic():
                ReviewSchedule.objects.filter(owner_id=owner_id, item_id=item_id).delete()
                deleted, _ = LearnableItem.objects.filter(owner_id=owner_id, item_id=item_id).delete()
        return deleted > 0

    def scan(self, owner_id=None):
        """Every known item as a record; never-taken items get the zero state."""
        items = LearnableItem.objects.all()
        schedules = ReviewSchedule.objects.all()
        if owner_id is not None:
            items = items.filter(owner_id=owner_id)
            schedules = schedules.filter(owner_id=owner_id)

        with _store_errors("scan"):
            records = {(row.owner_id, row.item_id): _to_record(row) for row in schedules.iterator()}
            for key in items.values_list("owner_id", "item_id").iterator():
                if key not in records:
                    records[key] = ReviewRecord.initial(*key)
        return list(records.values())
