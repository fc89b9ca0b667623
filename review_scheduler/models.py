from .data.models import LearnableItem, ReviewSchedule  # noqa: F401
