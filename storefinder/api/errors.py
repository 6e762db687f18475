"""Translate store finder errors into HTTP responses."""

from fastapi import HTTPException, status

from storefinder.finder.exceptions import (
    AcquisitionError,
    InvalidCredentialError,
    ServiceError,
    StaleSearchError,
    StoreFinderError,
)


def to_http_exception(error: StoreFinderError) -> HTTPException:
    if isinstance(error, InvalidCredentialError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, ServiceError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, AcquisitionError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, StaleSearchError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)
