import threading
import time

import structlog

from ..config import SchedulerConfig
from ..domain.logic import next_interval
from ..domain.records import AttemptReport, ReviewRecord, validate_score
from ..errors import ConcurrencyExhausted, InvalidReport, StoreUnavailable
from ..utils.time import as_aware, days_after, to_utc_iso
from .due_index import DueIndex

logger = structlog.get_logger()


class ReviewScheduler:
    """Applies attempts to review records and answers due queries.

    Updates to one (owner, item) pair are linearized by the store's
    revision check; nothing else is locked. A conflicting commit reloads
    the record and tries again, up to ``config.max_retries`` times.
    """

    def __init__(self, store, index=None, config=None, clock=time.monotonic):
        self.store = store
        self.index = index if index is not None else DueIndex()
        self.config = config if config is not None else SchedulerConfig()
        self._clock = clock

    def record_attempt(self, report: AttemptReport) -> ReviewRecord:
        log = logger.bind(owner_id=report.owner_id, item_id=report.item_id)
        log.info("attempt_received", score=report.score,
                 submitted_at=to_utc_iso(report.submitted_at))

        score = validate_score(report.score)
        deadline = None
        if self.config.timeout_seconds is not None:
            deadline = self._clock() + self.config.timeout_seconds

        for attempt in range(1, self.config.max_retries + 1):
            current = self.store.load(report.owner_id, report.item_id)
            if current is None:
                current = ReviewRecord.initial(report.owner_id, report.item_id)

            interval = next_interval(current.interval_days, score,
                                     current.attempt_count, self.config)
            try:
                next_review_at = days_after(report.submitted_at, interval)
            except OverflowError as exc:
                raise InvalidReport(
                    f"submitted_at {report.submitted_at.isoformat()} leaves no room "
                    f"for a {interval}-day interval"
                ) from exc
            updated = current.advance(
                submitted_at=report.submitted_at,
                interval_days=interval,
                next_review_at=next_review_at,
            )
            if self.store.compare_and_swap(updated, expected_revision=current.revision):
                self._index_committed(updated, log)
                log.info("attempt_committed",
                         revision=updated.revision,
                         attempt_count=updated.attempt_count,
                         interval_days=updated.interval_days,
                         next_review_utc=to_utc_iso(updated.next_review_at),
                         commit_attempts=attempt)
                return updated

            log.debug("commit_conflict", read_revision=current.revision, attempt=attempt)
            if deadline is not None and self._clock() >= deadline:
                log.warning("concurrency_deadline_exceeded", attempts=attempt)
                raise ConcurrencyExhausted(report.owner_id, report.item_id, attempt)

        log.warning("concurrency_exhausted", attempts=self.config.max_retries)
        raise ConcurrencyExhausted(report.owner_id, report.item_id, self.config.max_retries)

    def get_due_items(self, owner_id, as_of, limit):
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        owner_id = str(owner_id)
        as_of = as_aware(as_of)
        if not self.index.is_loaded(owner_id):
            entries = self._load_owner(owner_id)
            logger.debug("due_index_warmed", owner_id=owner_id, entries=entries)
        item_ids = self.index.due(owner_id, as_of, limit)
        logger.info("due_items_query", owner_id=owner_id,
                    as_of_utc=to_utc_iso(as_of), limit=limit, item_count=len(item_ids))
        return item_ids

    def get_schedule(self, owner_id, item_id):
        return self.store.load(str(owner_id), str(item_id))

    def register_item(self, owner_id, item_id) -> bool:
        owner_id, item_id = str(owner_id), str(item_id)
        created = self.store.add_item(owner_id, item_id)
        if created:
            self.index.upsert(ReviewRecord.initial(owner_id, item_id))
        logger.info("item_registered", owner_id=owner_id, item_id=item_id, created=created)
        return created

    def remove_item(self, owner_id, item_id) -> bool:
        owner_id, item_id = str(owner_id), str(item_id)
        removed = self.store.remove_item(owner_id, item_id)
        self.index.remove(owner_id, item_id)
        logger.info("item_removed", owner_id=owner_id, item_id=item_id, removed=removed)
        return removed

    def reconcile(self, owner_id=None) -> int:
        """Rebuild the due index from the store (one owner, or every owner)."""
        if owner_id is not None:
            owner_id = str(owner_id)
            count = self._load_owner(owner_id)
            logger.info("due_index_reconciled", owner_id=owner_id, entries=count)
            return count

        by_owner = {}
        for record in self.store.scan():
            by_owner.setdefault(record.owner_id, []).append(record)
        # Owners that vanished from the store end up with an empty bucket
        for known in self.index.owners():
            by_owner.setdefault(known, [])

        count = 0
        for owner, records in by_owner.items():
            self.index.track(owner)
            count += self.index.load_owner(owner, records)
        logger.info("due_index_reconciled", owners=len(by_owner), entries=count)
        return count

    def _index_committed(self, record, log):
        """Index a committed record unless its item was removed meanwhile.

        ``remove_item`` deletes from the store before the index, so checking
        the store after the upsert catches a removal that slipped in between
        the commit and the upsert. When the check itself fails the entry is
        dropped; an under-reporting index is healed by ``reconcile``.
        """
        self.index.upsert(record)
        try:
            still_stored = self.store.load(record.owner_id, record.item_id) is not None
        except StoreUnavailable:
            log.warning("index_check_store_unavailable", revision=record.revision)
            still_stored = False
        if not still_stored:
            self.index.remove(record.owner_id, record.item_id)
            log.info("index_entry_dropped", revision=record.revision)

    def _load_owner(self, owner_id):
        self.index.track(owner_id)
        return self.index.load_owner(owner_id, self.store.scan(owner_id))


_default_scheduler = None
_default_lock = threading.Lock()


def get_scheduler() -> ReviewScheduler:
    """Process-wide scheduler over the Django store, configured from settings."""
    global _default_scheduler
    with _default_lock:
        if _default_scheduler is None:
            from ..data.repos import DjangoReviewStore

            _default_scheduler = ReviewScheduler(DjangoReviewStore(),
                                                 config=SchedulerConfig.from_settings())
        return _default_scheduler


def reset_scheduler():
    global _default_scheduler
    with _default_lock:
        _default_scheduler = None


def record_attempt(owner_id, item_id, score: float, submitted_at) -> ReviewRecord:
    return get_scheduler().record_attempt(AttemptReport(owner_id, item_id, score, submitted_at))


def get_due_items(owner_id, as_of, limit: int = 50):
    return get_scheduler().get_due_items(owner_id, as_of, limit)


def get_schedule(owner_id, item_id):
    return get_scheduler().get_schedule(owner_id, item_id)


def register_item(owner_id, item_id) -> bool:
    return get_scheduler().register_item(owner_id, item_id)


def remove_item(owner_id, item_id) -> bool:
    return get_scheduler().remove_item(owner_id, item_id)


def reconcile(owner_id=None) -> int:
    return get_scheduler().reconcile(owner_id)
