"""Translation of engine errors to HTTP responses."""

from fastapi import HTTPException, status

from analyst_pro.core.errors import (
    AnalystProError,
    AuthorizationError,
    BusyError,
    InputValidationError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    TransientServiceError,
)
from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

# Most specific first
ERROR_STATUS: list[tuple[type[AnalystProError], int]] = [
    (AuthorizationError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (BusyError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (InputValidationError, status.HTTP_400_BAD_REQUEST),
    (TransientServiceError, status.HTTP_502_BAD_GATEWAY),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(error: AnalystProError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(error: AnalystProError) -> HTTPException:
    status_code = status_for(error)
    if status_code >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    return HTTPException(status_code=status_code, detail=str(error))
