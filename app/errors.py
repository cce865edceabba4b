"""API error classes.

Services raise these; the handlers registered in ``main.py`` turn every one
into the ``{status, code, message}`` JSON envelope with the matching HTTP
status code.
"""


class APIError(Exception):
    """Base class for API errors.

    Attributes:
        code: Machine-readable error code (e.g. "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    def __init__(self, code: str, message: str, status_code: int = 500) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def status(self) -> str:
        """Envelope status: "fail" for client errors, "error" for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_envelope(self) -> dict:
        return {"status": self.status, "code": self.code, "message": self.message}


class ValidationError(APIError):
    """Malformed input (400)."""

    def __init__(self, message: str) -> None:
        super().__init__(code="VALIDATION_ERROR", message=message, status_code=400)


class NotFoundError(APIError):
    """Resource not found (404).

    Also used when the resource exists but belongs to someone else, so that
    ownership is not leaked.
    """

    def __init__(self, resource: str, resource_id: str | int | None = None) -> None:
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(code="NOT_FOUND", message=message, status_code=404)


class InvalidCodeError(APIError):
    """Submitted one-time code does not match (400)."""

    def __init__(self, message: str = "The one-time code you entered is invalid.") -> None:
        super().__init__(code="INVALID_CODE", message=message, status_code=400)


class ExpiredCodeError(APIError):
    """One-time code is past its expiry (400)."""

    def __init__(self, message: str = "The one-time code has expired. Please request a new code.") -> None:
        super().__init__(code="CODE_EXPIRED", message=message, status_code=400)


class AlreadyUsedError(APIError):
    """One-time code was already consumed (400)."""

    def __init__(self, message: str = "The one-time code has already been used. Please request a new code.") -> None:
        super().__init__(code="CODE_ALREADY_USED", message=message, status_code=400)


class ConflictError(APIError):
    """Duplicate resource (409)."""

    def __init__(self, message: str) -> None:
        super().__init__(code="CONFLICT", message=message, status_code=409)


class UnauthorizedError(APIError):
    """Missing or invalid bearer token (401)."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(code="UNAUTHORIZED", message=message, status_code=401)


class ForbiddenError(APIError):
    """Authenticated but lacking the required role (403)."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(code="FORBIDDEN", message=message, status_code=403)


class InternalError(APIError):
    """Store or transport failure (500)."""

    def __init__(
        self,
        message: str = "Internal server error",
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
    ) -> None:
        super().__init__(code=code, message=message, status_code=status_code)


class MailDeliveryError(InternalError):
    """The mail transport refused or failed to deliver a message (502)."""

    def __init__(self, message: str = "The one-time code could not be delivered. Please try again later.") -> None:
        super().__init__(message=message, code="MAIL_DELIVERY_FAILED", status_code=502)
