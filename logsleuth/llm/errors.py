"""Exceptions raised by the chat-completion transport and decoders."""

from typing import Optional


class ChatError(Exception):
    """Base exception for chat-completion errors."""

    pass


class TransportError(ChatError):
    """Raised when the request cannot be delivered (connection, DNS, TLS, timeout)."""

    pass


class RemoteError(ChatError):
    """Raised when the service answers with a status outside [200, 300).

    Attributes:
        status_code: HTTP status returned by the service
        body: Raw response body, kept for diagnostics
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Received non-2xx response: {status_code}\nResponse body: {body}"
        )


class DecodeError(ChatError):
    """Raised when a buffered response body is not a valid completion document."""

    def __init__(self, message: str, body: Optional[bytes] = None):
        self.body = body
        if body is not None:
            message = f"{message}\nResponse body: {body.decode('utf-8', errors='replace')}"
        super().__init__(message)


class StreamDecodeError(DecodeError):
    """Raised when a streaming frame carries a malformed JSON payload."""

    def __init__(self, message: str, line: str):
        self.line = line
        super().__init__(f"{message}\nLine: {line}")


class StreamReadError(ChatError):
    """Raised when reading the streaming body fails mid-stream."""

    pass


class RequestCancelledError(ChatError):
    """Raised when a streaming request is cancelled through its cancel event."""

    pass
