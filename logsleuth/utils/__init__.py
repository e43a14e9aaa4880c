"""
Utility functions and helpers.

Logging configuration and trace logging shared by the CLI and the client.
"""

from logsleuth.utils.logging import (
    configure_logging,
    enable_trace_logging,
    disable_trace_logging,
    log_debug,
    log_error,
    log_prompt,
    log_prompt_response,
)

__all__ = [
    "configure_logging",
    "enable_trace_logging",
    "disable_trace_logging",
    "log_debug",
    "log_error",
    "log_prompt",
    "log_prompt_response",
]
