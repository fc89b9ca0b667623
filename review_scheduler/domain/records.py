import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..errors import InvalidScore, InvariantViolation
from ..utils.time import as_aware, to_utc_iso


@dataclass(frozen=True)
class ReviewRecord:
    """Schedule state for one (owner, item) pair.

    Validated on construction, so every record read from or written to a
    store satisfies the schedule invariants.
    """

    owner_id: str
    item_id: str
    last_taken_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    interval_days: int = 0
    attempt_count: int = 0
    revision: int = 0

    def __post_init__(self):
        if (self.last_taken_at is None) != (self.next_review_at is None):
            raise InvariantViolation(
                f"{self.owner_id}/{self.item_id}: last_taken_at and "
                "next_review_at must both be set or both be empty"
            )
        if self.last_taken_at is not None and self.next_review_at < self.last_taken_at:
            raise InvariantViolation(
                f"{self.owner_id}/{self.item_id}: next_review_at precedes last_taken_at"
            )
        for name in ("interval_days", "attempt_count", "revision"):
            if getattr(self, name) < 0:
                raise InvariantViolation(f"{self.owner_id}/{self.item_id}: negative {name}")

    @classmethod
    def initial(cls, owner_id, item_id):
        return cls(owner_id=str(owner_id), item_id=str(item_id))

    @property
    def never_taken(self) -> bool:
        return self.last_taken_at is None

    def advance(self, submitted_at, interval_days, next_review_at):
        """Next committed state after one attempt."""
        return replace(
            self,
            last_taken_at=submitted_at,
            next_review_at=next_review_at,
            interval_days=interval_days,
            attempt_count=self.attempt_count + 1,
            revision=self.revision + 1,
        )

    def as_dict(self):
        return {
            "owner_id": self.owner_id,
            "item_id": self.item_id,
            "last_taken_at": to_utc_iso(self.last_taken_at),
            "next_review_at": to_utc_iso(self.next_review_at),
            "interval_days": self.interval_days,
            "attempt_count": self.attempt_count,
            "revision": self.revision,
        }


def validate_score(score) -> float:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidScore(f"score must be a number, got {score!r}")
    if math.isnan(score) or not 0 <= score <= 1:
        raise InvalidScore(f"score must be within [0, 1], got {score!r}")
    return float(score)


@dataclass(frozen=True)
class AttemptReport:
    owner_id: str
    item_id: str
    score: float
    submitted_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "owner_id", str(self.owner_id))
        object.__setattr__(self, "item_id", str(self.item_id))
        object.__setattr__(self, "submitted_at", as_aware(self.submitted_at))

    @classmethod
    def from_counts(cls, owner_id, item_id, correct: int, total: int, submitted_at):
        """Normalize a quiz result (correct answers out of total) to a score."""
        if total <= 0:
            raise InvalidScore(f"total must be positive, got {total}")
        if not 0 <= correct <= total:
            raise InvalidScore(f"correct must be within [0, {total}], got {correct}")
        return cls(owner_id, item_id, correct / total, submitted_at)
