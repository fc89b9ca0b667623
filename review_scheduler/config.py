from dataclasses import dataclass, fields
from typing import Optional

from django.core.exceptions import ImproperlyConfigured

PASS_THRESHOLD = 0.8
FAIL_THRESHOLD = 0.6
GROWTH_FACTOR = 2.0
MAX_INTERVAL_DAYS = 60
FIRST_INTERVAL_DAYS = 1
RETRY_INTERVAL_DAYS = 1
MAX_RETRIES = 5


@dataclass(frozen=True)
class SchedulerConfig:
    pass_threshold: float = PASS_THRESHOLD
    fail_threshold: float = FAIL_THRESHOLD
    growth_factor: float = GROWTH_FACTOR
    max_interval_days: int = MAX_INTERVAL_DAYS
    max_retries: int = MAX_RETRIES
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        if not 0 <= self.fail_threshold <= self.pass_threshold <= 1:
            raise ImproperlyConfigured(
                "REVIEW_SCHEDULER thresholds must satisfy "
                "0 <= fail_threshold <= pass_threshold <= 1"
            )
        if self.growth_factor < 1:
            raise ImproperlyConfigured("REVIEW_SCHEDULER growth_factor must be >= 1")
        if self.max_interval_days < 1:
            raise ImproperlyConfigured("REVIEW_SCHEDULER max_interval_days must be >= 1")
        if self.max_retries < 1:
            raise ImproperlyConfigured("REVIEW_SCHEDULER max_retries must be >= 1")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ImproperlyConfigured("REVIEW_SCHEDULER timeout_seconds must be > 0")

    @classmethod
    def from_settings(cls, settings=None):
        """Build a config from the ``REVIEW_SCHEDULER`` Django setting."""
        if settings is None:
            from django.conf import settings
        overrides = dict(getattr(settings, "REVIEW_SCHEDULER", None) or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown REVIEW_SCHEDULER option(s): {', '.join(unknown)}"
            )
        return cls(**overrides)


DEFAULT_CONFIG = SchedulerConfig()
