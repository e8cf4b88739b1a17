# cart_engine/api/errors.py
from fastapi import HTTPException, status

from cart_engine.domain.errors import (
    AuthenticationRequiredError,
    CartEngineError,
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)

# most specific first
_STATUS_BY_ERROR = (
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
)


def to_http(error: CartEngineError) -> HTTPException:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
