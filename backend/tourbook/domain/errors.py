"""Domain errors raised by the booking core."""


class BookingError(Exception):
    """Base class for every error scoped to a booking session."""


class InvalidArgumentError(BookingError, ValueError):
    """Raised when an input value cannot be interpreted (e.g. a malformed date)."""


class ValidationError(BookingError):
    """Raised when a flow step guard is violated."""


class NetworkError(BookingError):
    """Raised when an agency API call fails in transport or times out."""


class IneligibleActionError(BookingError):
    """Raised when an action is rejected locally, without a network call."""


class FlowNotFoundError(BookingError):
    """Raised when a flow session id is unknown or has expired."""


class ExternalServiceError(BookingError):
    """Raised when the agency API answers with a structured failure."""

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)
