"""Translate domain errors raised by services into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException, status

from belako_api.core.errors import (
    BelakoError,
    InvalidAssetError,
    InvalidEventError,
    InvalidStateError,
    NotFoundError,
)

_STATUS_BY_ERROR: tuple[tuple[type[BelakoError], int], ...] = (
    (InvalidEventError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidAssetError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidStateError, status.HTTP_409_CONFLICT),
)


def http_error(error: BelakoError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected domain error")
