"""
Rich-based output formatting for terminal display.

Provides headers, status lines, Markdown rendering and a live renderer that
redraws a streamed answer as its fragments arrive.
"""

from __future__ import annotations
from typing import List, Optional
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich import box


def safe_md(s: str) -> str:
    """Ensure that Markdown code fences are properly closed."""
    fences = s.count("```")
    return s + ("\n```" if fences % 2 else "")


class OutputFormatter:
    """Formats output with Rich styling."""

    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize output formatter.

        Args:
            console: Rich console instance (creates new one if not provided)
        """
        self.console = console or Console()

    def print_header(self, text: str) -> None:
        self.console.print(f"\n[bold cyan]### {text} ###[/bold cyan]\n")

    def print_status(self, message: str, status: str = "info") -> None:
        """
        Print a status message with indicator.

        Args:
            message: Status message
            status: Status type (success, error, warning, info)
        """
        icons = {
            "success": self.SUCCESS,
            "error": self.ERROR,
            "warning": self.WARNING,
            "info": self.INFO,
        }
        icon = icons.get(status, self.INFO)
        self.console.print(f"[bold cyan][logsleuth][/bold cyan] {icon} {message}")

    def print_markdown(self, markdown_text: str) -> None:
        """Render Markdown text in an assistant panel."""
        clean_content = markdown_text.strip() if markdown_text else ""
        self.console.print(
            Panel(
                Markdown(safe_md(clean_content)) if clean_content else "",
                title="🤖 Assistant",
                title_align="left",
                border_style="cyan",
                box=box.ROUNDED,
                padding=(0, 1),
                expand=True,
            )
        )

    def print_queries(self, queries: List[str]) -> None:
        """Print query commands as fenced shell blocks."""
        for query in queries:
            self.console.print(Markdown(f"```shell\n{query}\n```"))

    def stream_renderer(self) -> StreamRenderer:
        return StreamRenderer(self.console)


class StreamRenderer:
    """Live Markdown view of a streamed answer.

    Use as a context manager and pass the instance as the streaming
    decoder's fragment sink::

        with formatter.stream_renderer() as render:
            transport.complete(messages, stream=True, on_fragment=render)
    """

    def __init__(self, console: Console, refresh_per_second: int = 8):
        self.console = console
        self.refresh_per_second = refresh_per_second
        self._parts: List[str] = []
        self._live: Optional[Live] = None

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __enter__(self) -> StreamRenderer:
        self._live = Live("", console=self.console, refresh_per_second=self.refresh_per_second)
        self._live.__enter__()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._live is not None:
            self._live.__exit__(exc_type, exc_value, traceback)
            self._live = None

    def __call__(self, fragment: str) -> None:
        self._parts.append(fragment)
        if self._live is not None:
            self._live.update(Markdown(safe_md(self.text)))
