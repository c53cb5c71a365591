from fastapi import HTTPException, status

from ..domain.errors import (
    BookingError,
    ExternalServiceError,
    FlowNotFoundError,
    IneligibleActionError,
    InvalidArgumentError,
    NetworkError,
    ValidationError,
)

_PASSTHROUGH_STATUSES = {status.HTTP_404_NOT_FOUND, status.HTTP_409_CONFLICT, status.HTTP_410_GONE}


def to_http_exception(exc: BookingError) -> HTTPException:
    if isinstance(exc, InvalidArgumentError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, FlowNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, IneligibleActionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, NetworkError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, ExternalServiceError):
        if exc.status_code in _PASSTHROUGH_STATUSES:
            return HTTPException(status_code=exc.status_code, detail=exc.message)
        if exc.status_code == status.HTTP_400_BAD_REQUEST:
            # e.g. INSUFFICIENT_CAPACITY
            return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="unexpected booking error")
