class AppError(Exception):
    """Base class for errors reported to the caller as a plain message."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AppError):
    """Raised when a record referenced by id does not exist."""
    status_code = 404


class CurrencyNotFound(NotFound):
    """Raised when a currency name does not resolve during a money movement."""
    pass


class ValidationFailed(AppError):
    """Raised for structurally invalid input (empty sale, non-positive amount...)."""
    status_code = 400


class InsufficientStock(AppError):
    """Raised when a sale line would oversell a purchase batch."""
    status_code = 409


class InsufficientFunds(AppError):
    """Raised when a payment or withdrawal would overdraw an account."""
    status_code = 409


class ReferentialConflict(AppError):
    """Raised when a delete is blocked by dependent rows."""
    status_code = 409


class DuplicateKey(AppError):
    """Raised when a unique value is already taken."""
    status_code = 409
