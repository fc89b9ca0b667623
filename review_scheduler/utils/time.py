from datetime import timedelta, timezone as dt_tz

from django.utils import timezone


def as_aware(dt):
    """Treat naive datetimes as UTC."""
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, dt_tz.utc)
    return dt


def days_after(dt, days: int):
    return dt + timedelta(days=days)


def to_utc_iso(dt):
    if dt is None:
        return None
    return dt.astimezone(dt_tz.utc).isoformat()
