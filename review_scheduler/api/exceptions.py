import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from ..errors import ConcurrencyExhausted, InvalidReport, StoreUnavailable

logger = structlog.get_logger()

_STATUS = {
    InvalidReport: status.HTTP_400_BAD_REQUEST,
    ConcurrencyExhausted: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def scheduler_exception_handler(exc, context):
    """DRF exception handler that also maps scheduler errors to responses.

    InvariantViolation is left alone so it surfaces as a server error.
    """
    for exc_type, status_code in _STATUS.items():
        if isinstance(exc, exc_type):
            break
    else:
        return drf_exception_handler(exc, context)

    if isinstance(exc, ConcurrencyExhausted):
        # Prior committed state is intact; the learner just resubmits
        detail = "The review could not be saved right now, please try again."
    elif isinstance(exc, StoreUnavailable):
        detail = "Review storage is temporarily unavailable."
    else:
        detail = str(exc)

    logger.warning("scheduler_error_response",
                   error=type(exc).__name__, status=status_code, message=str(exc))
    return Response({"error": type(exc).__name__, "detail": detail}, status=status_code)
