

class EventureError(Exception):
    """
    Base exception for all domain-level errors
    inside the Eventure booking engine.
    """


class NotFoundError(EventureError):
    """Raised when a user, event or booking does not exist."""


class ForbiddenError(EventureError):
    """Raised when the caller does not own the resource or lacks the role."""


class ValidationError(EventureError):
    """Raised when required input is missing or malformed."""


class CapacityExceededError(EventureError):
    """Raised when more tickets are requested than are available."""

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Only {available} tickets available, but {requested} requested."
        )


class PaymentRequiredError(EventureError):
    """Raised when a booking arrives without a successful payment."""


class AlreadyCancelledError(EventureError):
    """Raised when cancelling a booking that is already cancelled."""


class PayloadTooLargeError(EventureError):
    """Raised when an uploaded banner image exceeds the size limit."""


class DataInconsistencyError(EventureError):
    """Raised on referential anomalies, e.g. a booking with no tickets."""


class InvalidStateTransitionError(EventureError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)
