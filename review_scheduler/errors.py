class SchedulerError(Exception):
    """Base class for review scheduler failures."""


class InvalidReport(SchedulerError, ValueError):
    """An attempt report the scheduler cannot apply. Caller error."""


class InvalidScore(InvalidReport):
    """Score outside [0, 1] or an unusable correct/total pair."""


class ConcurrencyExhausted(SchedulerError):
    """Too many revision conflicts (or the retry deadline passed).

    Transient: the caller may retry the whole attempt. The previously
    committed record is left intact.
    """

    def __init__(self, owner_id, item_id, attempts: int):
        self.owner_id = owner_id
        self.item_id = item_id
        self.attempts = attempts
        super().__init__(
            f"gave up on {owner_id}/{item_id} after {attempts} conflicting commits"
        )


class StoreUnavailable(SchedulerError):
    """The record store could not be reached. Never retried internally."""


class InvariantViolation(SchedulerError):
    """Programming error, e.g. a negative interval reaching the policy."""
