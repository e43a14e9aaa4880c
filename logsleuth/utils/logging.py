"""Logging setup and trace logging.

Module loggers are structlog loggers configured once by ``configure_logging``
and written to stderr, so they never interleave with the streamed answer on
stdout.

Trace logging (``--trace DIR``) additionally records every prompt sent to the
chat-completion service and every response received, in full, to
``DIR/logsleuth_trace.log``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

TRACE_FILE_NAME = "logsleuth_trace.log"

# Global state for trace logging
_TRACE_ENABLED = False
_TRACE_LOGGER: Optional[logging.Logger] = None
_TRACE_FILE_PATH: Optional[Path] = None


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure structlog for the CLI.

    Args:
        level: Standard logging level (e.g., logging.DEBUG, logging.INFO).
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def enable_trace_logging(trace_dir: Path) -> Path:
    """Enable trace logging to file.

    Args:
        trace_dir: Directory for the trace log file (created if missing)

    Returns:
        Path of the trace log file
    """
    global _TRACE_ENABLED, _TRACE_LOGGER, _TRACE_FILE_PATH

    trace_dir.mkdir(parents=True, exist_ok=True)
    _TRACE_ENABLED = True
    _TRACE_FILE_PATH = trace_dir / TRACE_FILE_NAME

    _TRACE_LOGGER = logging.getLogger("logsleuth.trace")
    _TRACE_LOGGER.setLevel(logging.DEBUG)
    _TRACE_LOGGER.propagate = False
    _TRACE_LOGGER.handlers.clear()

    file_handler = logging.FileHandler(_TRACE_FILE_PATH, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    _TRACE_LOGGER.addHandler(file_handler)

    _TRACE_LOGGER.info("=" * 80)
    _TRACE_LOGGER.info("Trace logging initialized")
    _TRACE_LOGGER.info("=" * 80)
    return _TRACE_FILE_PATH


def disable_trace_logging() -> None:
    """Disable trace logging and close the trace file."""
    global _TRACE_ENABLED, _TRACE_LOGGER, _TRACE_FILE_PATH

    if _TRACE_LOGGER:
        _TRACE_LOGGER.info("Trace logging disabled")
        for handler in _TRACE_LOGGER.handlers:
            handler.close()
        _TRACE_LOGGER.handlers.clear()

    _TRACE_ENABLED = False
    _TRACE_LOGGER = None
    _TRACE_FILE_PATH = None


def log_prompt(prompt: str, model: str) -> None:
    """Log a prompt sent to the chat-completion service.

    Args:
        prompt: The rendered conversation
        model: Model being used
    """
    if not _TRACE_ENABLED or not _TRACE_LOGGER:
        return

    _TRACE_LOGGER.info("-" * 80)
    _TRACE_LOGGER.info(f"LLM PROMPT | Model: {model}")
    _TRACE_LOGGER.info(f"Timestamp: {datetime.now().isoformat()}")
    _TRACE_LOGGER.info("-" * 80)
    _TRACE_LOGGER.info(prompt)
    _TRACE_LOGGER.info("-" * 80)


def log_prompt_response(response: str) -> None:
    """Log the assistant text received for the last prompt."""
    if not _TRACE_ENABLED or not _TRACE_LOGGER:
        return

    _TRACE_LOGGER.info("-" * 80)
    _TRACE_LOGGER.info("LLM RESPONSE")
    _TRACE_LOGGER.info(f"Timestamp: {datetime.now().isoformat()}")
    _TRACE_LOGGER.info("-" * 80)
    _TRACE_LOGGER.info(response)
    _TRACE_LOGGER.info("-" * 80)


def log_debug(message: str) -> None:
    if not _TRACE_ENABLED or not _TRACE_LOGGER:
        return

    _TRACE_LOGGER.debug(message)


def log_error(message: str, exception: Optional[Exception] = None) -> None:
    """Log an error message.

    Args:
        message: Error message
        exception: Exception object (optional)
    """
    if not _TRACE_ENABLED or not _TRACE_LOGGER:
        return

    _TRACE_LOGGER.error(message)
    if exception:
        _TRACE_LOGGER.error(f"{type(exception).__name__}: {exception}")
