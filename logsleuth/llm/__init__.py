"""
Chat-completion client.

Request/response models, buffered and streaming decoders and the HTTP
transport for OpenAI-compatible chat-completion endpoints.
"""

from .errors import (
    ChatError,
    DecodeError,
    RemoteError,
    RequestCancelledError,
    StreamDecodeError,
    StreamReadError,
    TransportError,
)
from .models import ChatRequest, Message, Role
from .transport import ChatTransport, send_request

__all__ = [
    "ChatError",
    "ChatRequest",
    "ChatTransport",
    "DecodeError",
    "Message",
    "RemoteError",
    "RequestCancelledError",
    "Role",
    "StreamDecodeError",
    "StreamReadError",
    "TransportError",
    "send_request",
]
