"""
Command-line interface for logsleuth.

Main entry point for the logsleuth CLI application.
"""
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.prompt import Prompt

from logsleuth import __version__
from logsleuth.config import Config, ConfigError, load_config
from logsleuth.conversation import Conversation
from logsleuth.llm.errors import ChatError
from logsleuth.llm.models import Message
from logsleuth.llm.prompts import (
    PromptTemplateLoader,
    build_analysis_messages,
    build_key_points_messages,
)
from logsleuth.llm.transport import ChatTransport
from logsleuth.logs import LogFileError, read_log_text, select_log_file
from logsleuth.queries.loki import ExtractionError, extract_queries
from logsleuth.report import build_report, write_report
from logsleuth.ui.output import OutputFormatter
from logsleuth.utils.logging import (
    configure_logging,
    disable_trace_logging,
    enable_trace_logging,
    log_error,
)

EXIT_COMMAND = "exit"

app = typer.Typer(
    name="logsleuth",
    help="AI-assisted Kubernetes pod log analysis",
    add_completion=False,
)

console = Console()
# Status lines for commands whose stdout is meant to be piped
err_console = Console(stderr=True)


def _load_log(
    config: Config,
    partial_name: str,
    log_dir: Optional[Path],
    out: Console = console,
) -> str:
    directory = log_dir or Path(config.log_directory)
    log_path = select_log_file(directory, partial_name)
    out.print(f"Processing file: {log_path}")
    return read_log_text(log_path)


def _ask(
    transport: ChatTransport,
    formatter: OutputFormatter,
    messages: Sequence[Message],
    stream: bool,
    chunk_delay: float,
) -> str:
    """Send one request and render the answer; returns the assistant text."""
    formatter.print_header("Assistant Response")
    if stream:
        with formatter.stream_renderer() as render:
            return transport.complete(
                messages, stream=True, chunk_delay=chunk_delay, on_fragment=render
            )

    text = transport.complete(messages)
    formatter.print_markdown(text)
    return text


def _chat(
    transport: ChatTransport,
    formatter: OutputFormatter,
    conversation: Conversation,
    stream: bool,
    chunk_delay: float,
) -> None:
    """Interactive follow-up loop; ``exit`` or end of input ends it."""
    console.print("\n[i cyan]Enter your message (type 'exit' to quit):[/i cyan]")
    while True:
        try:
            user_input = Prompt.ask("[bold green]>[/bold green]", console=console)
        except EOFError:
            break

        if user_input.strip().lower() == EXIT_COMMAND:
            console.print("[cyan]Exiting chat session.[/cyan]")
            break

        conversation.add_user(user_input)
        reply = _ask(transport, formatter, conversation.messages, stream, chunk_delay)
        conversation.add_assistant(reply)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"logsleuth version {__version__}")


@app.command()
def analyze(
    log: str = typer.Option(..., "--log", "-l", help="Partial log filename to match (e.g., '01-LOG')"),
    stream: bool = typer.Option(False, "--stream", help="Enable streaming output"),
    delay: Optional[int] = typer.Option(None, "--delay", min=0, help="Delay in milliseconds between streaming chunks"),
    noninteractive: bool = typer.Option(False, "--noninteractive", help="Run key points and full analysis, then export a Markdown report"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Markdown report file in non-interactive mode"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory searched for log files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    trace: Optional[Path] = typer.Option(None, "--trace", help="Write full prompts and responses to a trace log in this directory"),
) -> None:
    """Analyze a pod log: key points first, then a chat session or a report.

    The first file in the log directory whose name starts with the --log
    value is used.
    """
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    config = load_config()

    try:
        endpoint = config.get_endpoint()
        headers = config.build_headers()
        log_text = _load_log(config, log, log_dir)
    except (ConfigError, LogFileError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if trace:
        trace_file = enable_trace_logging(trace)
        console.print(f"[dim]Trace log: {trace_file}[/dim]")

    transport = ChatTransport(
        endpoint=endpoint,
        headers=headers,
        model=config.llm_model,
        timeout=config.llm_timeout_seconds,
    )
    formatter = OutputFormatter(console)
    loader = PromptTemplateLoader(custom_dir=config.prompt_templates_dir)
    chunk_delay = delay / 1000.0 if delay is not None else config.get_stream_delay()

    try:
        key_points = _ask(
            transport, formatter, build_key_points_messages(log_text, loader), stream, chunk_delay
        )
        analysis_messages = build_analysis_messages(key_points, loader)

        if noninteractive:
            analysis = _ask(transport, formatter, analysis_messages, stream, chunk_delay)
            queries = extract_queries(log_text, loki_url=config.loki_url, limit=config.loki_limit)
            report_path = write_report(
                output or Path(config.output_file),
                build_report(key_points, analysis, queries),
            )
            formatter.print_header("Loki Query Commands")
            formatter.print_queries(queries)
            formatter.print_status(f"Analysis saved to {report_path}", status="success")
        else:
            _chat(transport, formatter, Conversation(analysis_messages), stream, chunk_delay)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise typer.Exit(130)
    except (ChatError, ExtractionError, OSError) as e:
        log_error("Analysis failed", e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if trace:
            disable_trace_logging()


@app.command()
def query(
    log: str = typer.Option(..., "--log", "-l", help="Partial log filename to match (e.g., '01-LOG')"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory searched for log files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Print the Loki query commands derived from a pod log."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    config = load_config()

    try:
        log_text = _load_log(config, log, log_dir, out=err_console)
        queries: List[str] = extract_queries(log_text, loki_url=config.loki_url, limit=config.loki_limit)
    except (LogFileError, ExtractionError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for command in queries:
        typer.echo(command)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
