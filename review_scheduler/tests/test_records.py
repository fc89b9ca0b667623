from datetime import datetime, timedelta, timezone

import pytest

from review_scheduler.domain.records import AttemptReport, ReviewRecord
from review_scheduler.errors import InvalidScore, InvariantViolation


def test_initial_record_is_zero_state():
    record = ReviewRecord.initial("owner-1", 42)
    assert record.item_id == "42"
    assert record.never_taken
    assert (record.interval_days, record.attempt_count, record.revision) == (0, 0, 0)


def test_timestamps_must_be_set_together(t0):
    with pytest.raises(InvariantViolation):
        ReviewRecord("o", "i", last_taken_at=t0)
    with pytest.raises(InvariantViolation):
        ReviewRecord("o", "i", next_review_at=t0)


def test_next_review_cannot_precede_last_taken(t0):
    with pytest.raises(InvariantViolation):
        ReviewRecord("o", "i", last_taken_at=t0, next_review_at=t0 - timedelta(seconds=1),
                     interval_days=1, attempt_count=1, revision=1)


@pytest.mark.parametrize("field", ["interval_days", "attempt_count", "revision"])
def test_negative_counters_rejected(field):
    with pytest.raises(InvariantViolation):
        ReviewRecord("o", "i", **{field: -1})


def test_advance_bumps_revision_and_count(t0):
    record = ReviewRecord.initial("o", "i").advance(t0, 1, t0 + timedelta(days=1))
    assert record.revision == 1
    assert record.attempt_count == 1
    assert record.as_dict()["next_review_at"] == "2024-03-02T09:00:00+00:00"


def test_naive_submission_time_is_utc():
    report = AttemptReport("o", "i", 0.5, datetime(2024, 3, 1, 9, 0))
    assert report.submitted_at.tzinfo is not None
    assert report.submitted_at == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_from_counts_normalizes(t0):
    assert AttemptReport.from_counts("o", "i", 4, 5, t0).score == pytest.approx(0.8)


@pytest.mark.parametrize("correct, total", [(1, 0), (-1, 5), (6, 5)])
def test_from_counts_rejects_bad_pairs(t0, correct, total):
    with pytest.raises(InvalidScore):
        AttemptReport.from_counts("o", "i", correct, total, t0)
