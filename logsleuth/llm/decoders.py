"""Response decoders for buffered and streamed chat completions.

A buffered response is one JSON document whose ``choices[].message.content``
values form the answer. A streamed response is a sequence of server-sent
event lines::

    data: {"choices": [{"delta": {"content": "Hel"}}]}
    data: {"choices": [{"delta": {"content": "lo"}}]}
    data: [DONE]

Both decoders return the assistant text; the streaming decoder also hands
each fragment to a caller-supplied sink as soon as it arrives.
"""

import threading
import time
from enum import Enum, auto
from typing import Callable, Iterable, Iterator, List, Optional

import structlog
from pydantic import ValidationError

from logsleuth.llm.errors import (
    DecodeError,
    RequestCancelledError,
    StreamDecodeError,
    StreamReadError,
)
from logsleuth.llm.models import ChatCompletion, ChatCompletionChunk

logger = structlog.get_logger(__name__)

DATA_PREFIX = b"data: "
DONE_SENTINEL = b"[DONE]"

# Pause between emitted fragments, in seconds
DEFAULT_CHUNK_DELAY = 0.01


class StreamState(Enum):
    """States of the streaming decoder loop."""
    READ_LINE = auto()
    CLASSIFY_LINE = auto()
    CHECK_SENTINEL = auto()
    DECODE_FRAME = auto()
    EMIT = auto()
    DONE = auto()


def decode_buffered(body: bytes) -> str:
    """Decode a complete (non-streamed) response body.

    Args:
        body: Raw response bytes

    Returns:
        Concatenated content of every choice, in wire order

    Raises:
        DecodeError: If the body is not a valid completion document
    """
    try:
        completion = ChatCompletion.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"Error parsing JSON: {e}", body=body) from e

    if completion.usage is not None:
        logger.debug(
            f"Buffered completion usage: prompt={completion.usage.prompt_tokens}, "
            f"completion={completion.usage.completion_tokens}"
        )
    return completion.text()


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Split a stream of byte chunks into newline-terminated lines.

    Chunk boundaries are arbitrary; a line may span several chunks and a
    chunk may hold several lines. A trailing line without a newline is
    yielded when the stream ends. The iterator is lazy and single-pass.
    """
    buffer = b""
    for chunk in chunks:
        if not chunk:
            continue
        buffer += chunk
        while True:
            newline = buffer.find(b"\n")
            if newline < 0:
                break
            yield buffer[: newline + 1]
            buffer = buffer[newline + 1:]
    if buffer:
        yield buffer


def decode_streaming(
    chunks: Iterable[bytes],
    chunk_delay: float = DEFAULT_CHUNK_DELAY,
    on_fragment: Optional[Callable[[str], None]] = None,
    cancel: Optional[threading.Event] = None,
) -> str:
    """Decode a server-sent event stream into the accumulated assistant text.

    Args:
        chunks: Byte chunks of the response body, read lazily
        chunk_delay: Seconds to pause after each emitted fragment (0 disables)
        on_fragment: Sink receiving every non-empty fragment as it arrives
        cancel: Event that, once set, stops the stream

    Returns:
        The concatenation of every emitted fragment, in arrival order

    Raises:
        StreamReadError: If reading the body fails mid-stream
        StreamDecodeError: If a data frame is not valid JSON
        RequestCancelledError: If ``cancel`` is set before the stream ends
    """
    lines = iter_lines(chunks)
    parts: List[str] = []
    state = StreamState.READ_LINE
    line = b""
    payload = b""
    frame: Optional[ChatCompletionChunk] = None

    while state is not StreamState.DONE:
        if state is StreamState.READ_LINE:
            _raise_if_cancelled(cancel)
            try:
                line = next(lines)
            except StopIteration:
                # A cancelled stream can end early once its socket is shut down
                _raise_if_cancelled(cancel)
                state = StreamState.DONE
                continue
            except OSError as e:
                _raise_if_cancelled(cancel, cause=e)
                raise StreamReadError(f"Error reading response body: {e}") from e
            state = StreamState.CLASSIFY_LINE

        elif state is StreamState.CLASSIFY_LINE:
            # Keep-alives, comments and event names carry no content
            if line.startswith(DATA_PREFIX):
                payload = line[len(DATA_PREFIX):].strip()
                state = StreamState.CHECK_SENTINEL
            else:
                state = StreamState.READ_LINE

        elif state is StreamState.CHECK_SENTINEL:
            if payload == DONE_SENTINEL:
                state = StreamState.DONE
            else:
                state = StreamState.DECODE_FRAME

        elif state is StreamState.DECODE_FRAME:
            try:
                frame = ChatCompletionChunk.model_validate_json(payload)
            except ValidationError as e:
                raise StreamDecodeError(
                    f"Error parsing JSON: {e}",
                    line=payload.decode("utf-8", errors="replace"),
                ) from e
            state = StreamState.EMIT

        elif state is StreamState.EMIT:
            for fragment in frame.fragments():
                if not fragment:
                    continue
                _raise_if_cancelled(cancel)
                parts.append(fragment)
                if on_fragment is not None:
                    on_fragment(fragment)
                _pause(chunk_delay, cancel)
            state = StreamState.READ_LINE

    logger.debug(f"Stream complete: {len(parts)} fragments")
    return "".join(parts)


def _raise_if_cancelled(
    cancel: Optional[threading.Event], cause: Optional[BaseException] = None
) -> None:
    if cancel is not None and cancel.is_set():
        raise RequestCancelledError("Streaming request cancelled") from cause


def _pause(delay: float, cancel: Optional[threading.Event]) -> None:
    if delay <= 0:
        return
    if cancel is not None:
        # Returns early when the event is set
        cancel.wait(delay)
    else:
        time.sleep(delay)
