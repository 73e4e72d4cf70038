"""DRF exception handling for reservation errors."""

from __future__ import annotations

import structlog
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import RateLimited, ReservationError

logger = structlog.get_logger(__name__)


def reservation_exception_handler(exc, context):  # type: ignore
    """Render ReservationError subclasses as ``{code, detail, retryable, ...}``.

    Everything else falls through to the stock DRF handler.
    """
    if not isinstance(exc, ReservationError):
        return exception_handler(exc, context)

    view = context.get("view")
    logger.info(
        "reservation.rejected",
        code=exc.code,
        status=exc.status_code,
        view=view.__class__.__name__ if view else None,
    )
    response = Response(exc.to_dict(), status=exc.status_code)
    if isinstance(exc, RateLimited):
        response["Retry-After"] = str(exc.retry_after_seconds)
    return response
