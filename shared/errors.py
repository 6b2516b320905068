from __future__ import annotations

from typing import Any, Optional


class LitClientError(Exception):
    """Base class for every error raised by the client itself."""
    pass


class ConnectionNotOpenError(LitClientError):
    """Raised when an operation needs an open connection and there is none."""

    def __init__(self, message: str = "Connection not open. Open connection first using open()") -> None:
        super().__init__(message)


class ConnectionLostError(ConnectionNotOpenError):
    """Raised into calls that were still pending when the transport went away."""

    def __init__(self, message: str = "Connection to node lost while awaiting reply") -> None:
        super().__init__(message)


class RemoteError(LitClientError):
    """
    The node answered with a non-null `error` field.

    The wire value is kept untouched on `.error`; no structure is imposed on it.
    """

    def __init__(self, error: Any, method: Optional[str] = None, request_id: Optional[int] = None) -> None:
        self.error = error
        self.method = method
        self.request_id = request_id
        super().__init__(str(error))


class UnexpectedReplyError(LitClientError):
    """A reply arrived but did not have the shape or content the command expects."""

    def __init__(self, message: str, reply: Any = None) -> None:
        self.reply = reply
        super().__init__(message)


class RequestTimeoutError(LitClientError):
    """No reply arrived within the per-call timeout."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(f"{method} (id={request_id}) got no reply within {timeout}s")


class ConfigError(LitClientError):
    """Raised when configuration values cannot be parsed."""
    pass


class MalformedEnvelopeError(LitClientError):
    """Raised when an inbound frame is not a usable response envelope."""
    pass
