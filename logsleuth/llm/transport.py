"""HTTP transport for the chat-completion endpoint.

Issues a single POST per call and hands the body to the buffered or the
streaming decoder. There is no retry: transport failures, non-2xx statuses
and malformed bodies are raised to the caller as ``ChatError`` subclasses.
"""

import socket
import threading
from typing import Callable, Mapping, Optional, Sequence

import requests
import structlog

from logsleuth.llm.decoders import DEFAULT_CHUNK_DELAY, decode_buffered, decode_streaming
from logsleuth.llm.errors import RemoteError, TransportError
from logsleuth.llm.models import ChatRequest, Message
from logsleuth.utils.logging import log_debug, log_prompt, log_prompt_response

logger = structlog.get_logger(__name__)

# Buffered requests only; streaming requests never time out
DEFAULT_TIMEOUT = 60.0

# How often the cancel watcher checks whether the request has finished
CANCEL_POLL_INTERVAL = 0.1


class CancelWatcher:
    """Aborts a streaming response once its cancel event is set.

    A stalled stream blocks the reading thread inside the socket, where the
    cancel event is never looked at. The watcher runs in a daemon thread and
    shuts the socket down when the event fires, which wakes the blocked read.
    """

    def __init__(
        self,
        response: requests.Response,
        cancel: threading.Event,
        poll_interval: float = CANCEL_POLL_INTERVAL,
    ):
        self._response = response
        self._cancel = cancel
        self._poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def __enter__(self) -> "CancelWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            if self._cancel.wait(self._poll_interval):
                self._abort()
                return

    def _abort(self) -> None:
        """Shut the connection's socket down so a blocked read returns.

        Only the socket is touched; the response itself is closed by the
        reading thread.
        """
        connection = getattr(self._response.raw, "connection", None)
        sock = getattr(connection, "sock", None)
        if sock is None:
            logger.debug("Cancel requested but no open socket to shut down")
            return
        logger.debug("Cancel requested, shutting down the stream socket")
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Already closed by the peer
            logger.debug(f"Socket shutdown failed: {e}")


class ChatTransport:
    """Client for one OpenAI-compatible chat-completion endpoint.

    Holds only immutable configuration, so a single instance can serve
    concurrent calls.

    Attributes:
        endpoint: Full URL of the chat-completion endpoint
        headers: Opaque headers sent with every request (credentials included)
        model: Model identifier sent with every request
        timeout: Timeout in seconds for buffered requests
    """

    def __init__(
        self,
        endpoint: str,
        headers: Mapping[str, str],
        model: str,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.headers = dict(headers)
        self.model = model
        self.timeout = timeout

    def complete(
        self,
        messages: Sequence[Message],
        stream: bool = False,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
        on_fragment: Optional[Callable[[str], None]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Send the conversation and return the assistant text.

        Args:
            messages: Conversation in chronological order; never modified
            stream: Request an incrementally streamed response
            chunk_delay: Pause between streamed fragments, in seconds
            on_fragment: Sink for streamed fragments
            cancel: Event that interrupts a streamed response

        Returns:
            The assistant text

        Raises:
            TransportError: If the request cannot be sent
            RemoteError: If the service answers with a non-2xx status
            DecodeError: If the body cannot be decoded
            StreamReadError: If the stream breaks mid-way
        """
        request = ChatRequest(model=self.model, messages=tuple(messages), stream=stream)
        payload = request.to_payload()
        log_prompt(
            "\n\n".join(f"[{m.role.value}]\n{m.content}" for m in request.messages),
            model=self.model,
        )
        summary = (
            f"POST {self.endpoint} model={self.model} stream={stream} "
            f"messages={len(request.messages)}"
        )
        logger.debug(summary)
        log_debug(summary)

        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                headers=self.headers,
                stream=stream,
                timeout=None if stream else self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request to {self.endpoint} timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error sending HTTP request: {e}") from e

        try:
            if not 200 <= response.status_code < 300:
                raise RemoteError(response.status_code, response.text)

            if stream:
                text = self._decode_stream(response, chunk_delay, on_fragment, cancel)
            else:
                text = decode_buffered(response.content)
        finally:
            response.close()

        log_prompt_response(text)
        return text

    def _decode_stream(
        self,
        response: requests.Response,
        chunk_delay: float,
        on_fragment: Optional[Callable[[str], None]],
        cancel: Optional[threading.Event],
    ) -> str:
        chunks = response.iter_content(chunk_size=None)
        if cancel is None:
            return decode_streaming(chunks, chunk_delay=chunk_delay, on_fragment=on_fragment)
        with CancelWatcher(response, cancel):
            return decode_streaming(
                chunks, chunk_delay=chunk_delay, on_fragment=on_fragment, cancel=cancel
            )


def send_request(
    messages: Sequence[Message],
    stream: bool,
    headers: Mapping[str, str],
    endpoint: str,
    model: str,
    chunk_delay: float = DEFAULT_CHUNK_DELAY,
    on_fragment: Optional[Callable[[str], None]] = None,
    cancel: Optional[threading.Event] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Send one chat-completion request. See ``ChatTransport.complete``."""
    transport = ChatTransport(endpoint=endpoint, headers=headers, model=model, timeout=timeout)
    return transport.complete(
        messages,
        stream=stream,
        chunk_delay=chunk_delay,
        on_fragment=on_fragment,
        cancel=cancel,
    )
