import threading
from datetime import datetime, timedelta, timezone

import pytest

from review_scheduler.config import SchedulerConfig
from review_scheduler.domain.records import AttemptReport, ReviewRecord
from review_scheduler.data.memory import InMemoryReviewStore
from review_scheduler.errors import ConcurrencyExhausted, InvalidReport, InvalidScore, StoreUnavailable
from review_scheduler.services.reviews import ReviewScheduler

from .helpers import RacingStore


def attempt(scheduler, score, when, owner_id="learner", item_id="quiz-1"):
    return scheduler.record_attempt(AttemptReport(owner_id, item_id, score, when))


def seed(store, when, interval_days, attempt_count, owner_id="learner", item_id="quiz-1"):
    record = ReviewRecord(owner_id, item_id, last_taken_at=when,
                          next_review_at=when + timedelta(days=interval_days),
                          interval_days=interval_days, attempt_count=attempt_count,
                          revision=attempt_count)
    assert store.compare_and_swap(record, 0)
    return record


# Scenarios

def test_scenario_a_first_attempt(scheduler, t0):
    record = attempt(scheduler, 0.9, t0)
    assert record.interval_days == 1
    assert record.attempt_count == 1
    assert record.revision == 1
    assert record.last_taken_at == t0
    assert record.next_review_at == t0 + timedelta(days=1)


def test_scenario_b_pass_grows(scheduler, memory_store, t0):
    seed(memory_store, t0, interval_days=1, attempt_count=1)
    record = attempt(scheduler, 0.9, t0 + timedelta(days=1))
    assert record.interval_days == 2
    assert record.attempt_count == 2


def test_scenario_c_failure_resets(scheduler, memory_store, t0):
    seed(memory_store, t0, interval_days=8, attempt_count=3)
    record = attempt(scheduler, 0.3, t0 + timedelta(days=8))
    assert record.interval_days == 1
    assert record.next_review_at == t0 + timedelta(days=9)


def test_scenario_d_capped(scheduler, memory_store, t0):
    seed(memory_store, t0, interval_days=40, attempt_count=6)
    assert attempt(scheduler, 0.95, t0 + timedelta(days=40)).interval_days == 60


def test_scenario_e_two_concurrent_passes(scheduler, memory_store, t0):
    barrier = threading.Barrier(2)
    results, errors = [], []

    def submit():
        barrier.wait()
        try:
            results.append(attempt(scheduler, 0.9, t0))
        except Exception as exc:  # surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=submit) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    final = memory_store.load("learner", "quiz-1")
    assert final.attempt_count == 2
    assert final.revision == 2
    assert final.interval_days == 2
    assert sorted(r.revision for r in results) == [1, 2]


def test_many_concurrent_attempts_lose_nothing(memory_store, t0):
    n = 8
    scheduler = ReviewScheduler(memory_store, config=SchedulerConfig(max_retries=n + 2))
    barrier = threading.Barrier(n)
    results = []
    lock = threading.Lock()

    def submit():
        barrier.wait()
        record = attempt(scheduler, 1.0, t0)
        with lock:
            results.append(record)

    threads = [threading.Thread(target=submit) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    final = memory_store.load("learner", "quiz-1")
    assert final.attempt_count == n
    assert final.revision == n
    assert sorted(r.revision for r in results) == list(range(1, n + 1))
    # Serial order: 1, 2, 4, 8, 16, 32, 60, 60
    by_revision = {r.revision: r.interval_days for r in results}
    assert [by_revision[i] for i in range(1, n + 1)] == [1, 2, 4, 8, 16, 32, 60, 60]


# Conflict handling

def test_conflicting_commit_is_retried_on_fresh_state(memory_store, t0):
    racing = RacingStore(memory_store, rival_commits=2, when=t0)
    scheduler = ReviewScheduler(racing)

    record = attempt(scheduler, 0.9, t0 + timedelta(hours=1))

    assert record.revision == 3
    assert record.attempt_count == 3
    # Based on the rival's second commit (interval 1), a pass doubles it
    assert record.interval_days == 2


def test_retries_are_bounded(memory_store, t0):
    racing = RacingStore(memory_store, rival_commits=100, when=t0)
    scheduler = ReviewScheduler(racing, config=SchedulerConfig(max_retries=5))

    with pytest.raises(ConcurrencyExhausted) as excinfo:
        attempt(scheduler, 0.9, t0 + timedelta(hours=1))

    assert excinfo.value.attempts == 5
    stored = memory_store.load("learner", "quiz-1")
    # Only the rival's five commits landed
    assert stored.revision == 5
    assert stored.last_taken_at == t0


def test_wall_clock_deadline(memory_store, t0):
    ticks = iter(range(0, 1000, 2))
    racing = RacingStore(memory_store, rival_commits=100, when=t0)
    scheduler = ReviewScheduler(racing, config=SchedulerConfig(timeout_seconds=1),
                                clock=lambda: next(ticks))

    with pytest.raises(ConcurrencyExhausted) as excinfo:
        attempt(scheduler, 0.9, t0)

    assert excinfo.value.attempts == 1


def test_invalid_score_leaves_state_untouched(scheduler, memory_store, t0):
    before = seed(memory_store, t0, interval_days=4, attempt_count=2)
    with pytest.raises(InvalidScore):
        attempt(scheduler, 1.5, t0 + timedelta(days=4))
    assert memory_store.load("learner", "quiz-1") == before


# Queries

def test_get_schedule_is_a_pure_read(scheduler, t0):
    assert scheduler.get_schedule("learner", "quiz-1") is None
    attempt(scheduler, 0.7, t0)
    first = scheduler.get_schedule("learner", "quiz-1")
    assert scheduler.get_schedule("learner", "quiz-1") == first


def test_due_items_includes_never_taken_and_excludes_future(scheduler, t0):
    scheduler.register_item("learner", "fresh")
    attempt(scheduler, 0.9, t0, item_id="soon")
    attempt(scheduler, 0.9, t0 - timedelta(hours=1), item_id="sooner")

    assert scheduler.get_due_items("learner", t0, 10) == ["fresh"]
    assert scheduler.get_due_items("learner", t0 + timedelta(days=1), 10) == ["fresh", "sooner", "soon"]
    assert scheduler.get_due_items("learner", t0 + timedelta(days=1), 2) == ["fresh", "sooner"]


def test_due_items_follow_later_commits(scheduler, t0):
    attempt(scheduler, 0.9, t0, item_id="a")
    assert scheduler.get_due_items("learner", t0 + timedelta(days=1), 10) == ["a"]

    attempt(scheduler, 0.9, t0 + timedelta(days=1), item_id="a")  # now due at day 3
    assert scheduler.get_due_items("learner", t0 + timedelta(days=2), 10) == []


def test_due_items_rejects_non_positive_limit(scheduler, t0):
    with pytest.raises(ValueError):
        scheduler.get_due_items("learner", t0, 0)


def test_due_items_are_scoped_to_owner(scheduler, t0):
    attempt(scheduler, 0.9, t0, owner_id="alice", item_id="a")
    attempt(scheduler, 0.9, t0, owner_id="bob", item_id="b")
    assert scheduler.get_due_items("alice", t0 + timedelta(days=2), 10) == ["a"]


def test_remove_item_cascades(scheduler, memory_store, t0):
    attempt(scheduler, 0.9, t0, item_id="a")
    assert scheduler.get_due_items("learner", t0 + timedelta(days=1), 10) == ["a"]

    assert scheduler.remove_item("learner", "a") is True
    assert memory_store.load("learner", "a") is None
    assert scheduler.get_due_items("learner", t0 + timedelta(days=1), 10) == []
    assert scheduler.remove_item("learner", "a") is False


def test_reconcile_heals_missing_index_entries(scheduler, t0):
    attempt(scheduler, 0.9, t0, item_id="a")
    attempt(scheduler, 0.9, t0, item_id="b")
    due_at = t0 + timedelta(days=1)
    assert scheduler.get_due_items("learner", due_at, 10) == ["a", "b"]

    scheduler.index.remove("learner", "b")
    assert scheduler.get_due_items("learner", due_at, 10) == ["a"]

    assert scheduler.reconcile() == 2
    assert scheduler.get_due_items("learner", due_at, 10) == ["a", "b"]


def test_fresh_scheduler_warms_index_from_store(memory_store, t0):
    attempt(ReviewScheduler(memory_store), 0.9, t0, item_id="a")
    restarted = ReviewScheduler(memory_store)
    assert restarted.get_due_items("learner", t0 + timedelta(days=1), 10) == ["a"]


# Removal racing a commit

class RemoveAfterCommitStore(InMemoryReviewStore):
    """Removes the item right after a commit lands, before the scheduler indexes it."""

    scheduler = None

    def compare_and_swap(self, record, expected_revision):
        committed = super().compare_and_swap(record, expected_revision)
        if committed and self.scheduler is not None:
            self.scheduler.remove_item(record.owner_id, record.item_id)
        return committed


def test_item_removed_mid_commit_does_not_reappear_as_due(t0):
    store = RemoveAfterCommitStore()
    scheduler = ReviewScheduler(store)
    scheduler.register_item("learner", "other")
    assert scheduler.get_due_items("learner", t0, 10) == ["other"]

    store.scheduler = scheduler
    attempt(scheduler, 0.9, t0, item_id="a")

    assert store.load("learner", "a") is None
    assert scheduler.get_due_items("learner", t0 + timedelta(days=30), 10) == ["other"]


def test_unverifiable_commit_is_left_out_of_the_index(t0):
    class FlakyReadStore(InMemoryReviewStore):
        loads = 0

        def load(self, owner_id, item_id):
            self.loads += 1
            if self.loads > 1:
                raise StoreUnavailable("review store unavailable during load")
            return super().load(owner_id, item_id)

    store = FlakyReadStore()
    scheduler = ReviewScheduler(store)
    scheduler.index.track("learner")
    scheduler.index.load_owner("learner", [])

    record = attempt(scheduler, 0.9, t0, item_id="a")

    assert record.revision == 1
    assert scheduler.index.due("learner", t0 + timedelta(days=1), 10) == []
    assert scheduler.reconcile("learner") == 1
    assert scheduler.index.due("learner", t0 + timedelta(days=1), 10) == ["a"]


# Timestamps at the edge of the calendar

def test_submission_with_no_room_for_the_interval_is_rejected(scheduler, memory_store):
    end_of_time = datetime(9999, 12, 31, 12, tzinfo=timezone.utc)

    with pytest.raises(InvalidReport):
        attempt(scheduler, 0.9, end_of_time)

    assert memory_store.load("learner", "quiz-1") is None
