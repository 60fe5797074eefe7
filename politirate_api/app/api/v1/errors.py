"""
Translation of service exceptions into HTTP errors.
"""

from fastapi import HTTPException, status

from politirate_api.app.core.exceptions import (
    ConflictError,
    DataAccessError,
    NotFoundError,
    PermissionDeniedError,
    PolitirateError,
    ValidationError,
)

STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DataAccessError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: PolitirateError) -> HTTPException:
    """Build the ``HTTPException`` for a service error.

    The detail is the exception's message, which services keep free of
    database internals.
    """
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
