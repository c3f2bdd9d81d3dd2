"""
Translation of engine errors into HTTP errors.
"""

import logging

from fastapi import HTTPException, status

from sharepool.services.errors import (
    ConfigurationError,
    EngineError,
    InvalidTransition,
    NotFound,
)

logger = logging.getLogger(__name__)


def http_error(exc: EngineError) -> HTTPException:
    """
    Map an engine error to the HTTP error a router raises.

    AlreadyProcessed is not mapped here: routers answer it with the
    existing result.
    """
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidTransition):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ConfigurationError):
        logger.error(f"Configuration error: {exc}")
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))
