"""Exception types raised by the focus tracker core."""


class FocusTrackerError(Exception):
    """Base class for all focus tracker errors."""


class PersistenceError(FocusTrackerError):
    """A session repository failed to read or write a record.

    Recoverable: the caller may retry the operation.
    """

    def __init__(self, message: str, *, session_id: str = "", cause: Exception | None = None):
        super().__init__(message)
        self.session_id = session_id
        self.cause = cause


class InvalidTransition(FocusTrackerError):
    """A state change was requested that the current state does not allow."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot transition from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested
