"""
User interface components for logsleuth.

Provides rich output formatting and live rendering of streamed answers.
"""

from logsleuth.ui.output import OutputFormatter, StreamRenderer, safe_md

__all__ = [
    "OutputFormatter",
    "StreamRenderer",
    "safe_md",
]
