"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from careerzone.domain.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    LedgerError,
    LedgerStorageError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (InsufficientBalanceError, status.HTTP_402_PAYMENT_REQUIRED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (LedgerStorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for_error(error: LedgerError) -> int:
    """Return the HTTP status code that reports ``error``."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def to_http_exception(error: LedgerError) -> HTTPException:
    """Translate a ledger error into the response sent to the client."""

    detail: str | dict[str, object] = str(error)
    if isinstance(error, InsufficientBalanceError):
        detail = {
            "message": str(error),
            "balance": error.balance,
            "required": error.required,
        }
    elif isinstance(error, LedgerStorageError):
        detail = "The operation could not be completed, nothing was recorded"
    return HTTPException(status_code=status_for_error(error), detail=detail)
