from django.apps import AppConfig


class ReviewSchedulerConfig(AppConfig):
    name = "review_scheduler"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from django.conf import settings

        from .logging import configure_logging

        if getattr(settings, "REVIEW_SCHEDULER_CONFIGURE_LOGGING", True):
            configure_logging(
                level=getattr(settings, "REVIEW_SCHEDULER_LOG_LEVEL", "INFO"),
                json_logs=getattr(settings, "REVIEW_SCHEDULER_LOG_JSON", False),
            )
