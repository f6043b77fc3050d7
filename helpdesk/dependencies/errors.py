"""Translate domain failures into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from helpdesk.domain.errors import (
    ConflictError,
    ForbiddenError,
    HelpdeskError,
    InvalidTicketTransitionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

_STATUS_CODES: tuple[tuple[type[HelpdeskError], int], ...] = (
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidTicketTransitionError, status.HTTP_409_CONFLICT),
)


def to_http_error(exc: HelpdeskError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, ValidationError) and exc.field:
        return HTTPException(status_code=status_code, detail={"message": str(exc), "field": exc.field})
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=status_code, detail=str(exc), headers=headers)
