"""Application error taxonomy.

Handlers raise these and never build error responses themselves; the error
translator in ``error_handlers`` decides the client-visible shape.
"""


class AppError(Exception):
    """Base class for errors carrying an HTTP status."""

    status_code: int = 500
    default_message: str = "Something went wrong"
    is_operational: bool = True

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def status(self) -> str:
        """``fail`` for client errors, ``error`` for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input data."


class ConflictError(AppError):
    status_code = 400
    default_message = "Duplicate field value. Please use another value!"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "You are not logged in. Please log in to get access."


class ForbiddenError(AppError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class PayloadTooLargeError(AppError):
    status_code = 413
    default_message = "Request entity too large"


class TooManyRequestsError(AppError):
    status_code = 429
    default_message = "Too many requests from this IP, please try again in an hour!"


class InternalError(AppError):
    """Unexpected fault; never detailed to clients in production."""

    status_code = 500
    default_message = "Something went very wrong!"
    is_operational = False


class InvalidTokenError(UnauthenticatedError):
    """Raised when a bearer token is malformed or its signature is invalid."""

    default_message = "Invalid token. Please log in again!"


class TokenExpiredError(InvalidTokenError):
    """Raised when a bearer token's expiry has passed."""

    default_message = "Your token has expired! Please log in again."
