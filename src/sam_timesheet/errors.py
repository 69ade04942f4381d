"""Error hierarchy for timesheet retrieval.

Transient failures (network, timeouts, unexpected status codes) are separated
from permanent ones (rejected credentials, unknown response shapes, broken
calendar HTML). Only the mid-session re-login is retried by the retriever;
everything else reaches the caller as one of these exceptions.
"""


class TimesheetError(Exception):
    """Base exception for all timesheet errors."""

    pass


class TransientError(TimesheetError):
    """Temporary failure that may succeed on a later run."""

    pass


class TransportError(TransientError):
    """Network failure, timeout or unexpected HTTP status from the portal."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransportError):
    """Portal answered 429 Too Many Requests."""

    pass


class PermanentError(TimesheetError):
    """Failure that won't succeed on retry."""

    pass


class AuthenticationError(PermanentError):
    """Login is impossible without operator intervention."""

    pass


class CredentialsRejected(AuthenticationError):
    """Login form was re-rendered (HTTP 200) instead of redirecting.

    Sets the sticky error flag in the store.
    """

    pass


class AlreadyFlagged(AuthenticationError):
    """The sticky error flag is set; no login is attempted until it is cleared."""

    pass


class ProtocolError(PermanentError):
    """Portal response had an unrecognised shape.

    Also raised when the session is invalidated again right after a fresh login.
    """

    pass


class ParseError(PermanentError):
    """Calendar HTML did not contain the expected date/time text."""

    pass
