"""
Unit tests for CLI commands.
"""
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from logsleuth.cli import analyze, app
from logsleuth.config import Config
from logsleuth.llm.errors import RemoteError
from logsleuth.llm.models import Role

runner = CliRunner()

ENDPOINT = "https://llm.example.com/v1/chat/completions"

POD_LOG = (
    '2024-10-16T21:15:47Z namespace kube-system pod myapp-abc123 msg="OOMKilled"\n'
    "2024-10-16T21:16:03Z Back-off restarting failed container\n"
)


@pytest.fixture
def log_dir(tmp_path):
    directory = tmp_path / "LOGS"
    directory.mkdir()
    (directory / "01-LOG-myapp.txt").write_text(POD_LOG)
    return directory


@pytest.fixture
def config(tmp_path, log_dir, monkeypatch):
    """Patch configuration with a complete, isolated Config."""
    monkeypatch.setenv("K8s_APIKEY", "secret-key")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
    cfg = Config(
        _env_file=None,
        llm_endpoint=ENDPOINT,
        log_directory=str(log_dir),
        output_file=str(tmp_path / "output.md"),
        stream_delay_ms=0,
    )
    with patch("logsleuth.cli.load_config", return_value=cfg):
        yield cfg


@pytest.fixture
def transport():
    """Patch the chat transport; returns the instance used by the CLI."""
    with patch("logsleuth.cli.ChatTransport") as mock_cls:
        yield mock_cls.return_value


class TestVersionCommand:
    """Tests for version command."""

    def test_version_displays_version(self):
        """Test version command displays version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "logsleuth version 0.1.0" in result.stdout


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_noninteractive_writes_report(self, config, transport, tmp_path):
        """Test key points and analysis are exported with the Loki query."""
        transport.complete.side_effect = ["- Container OOMKilled", "Raise the memory limit."]

        result = runner.invoke(app, ["analyze", "--log", "01-LOG", "--noninteractive"])

        assert result.exit_code == 0, result.output
        assert "Processing file:" in result.stdout
        assert "Analysis saved to" in result.stdout
        assert "Loki Query Commands" in result.stdout

        report = (tmp_path / "output.md").read_text()
        assert report.startswith("# Key Points\n\n- Container OOMKilled")
        assert "# Analysis and Recommendations\n\nRaise the memory limit." in report
        assert "curl -G '" in report
        assert "query=%7Bnamespace%3D%22kube-system%22%2C+pod%3D%22myapp-abc123%22%7D" in report

    def test_transport_configured_from_config(self, config):
        """Test the transport gets endpoint, credentials and model."""
        with patch("logsleuth.cli.ChatTransport") as mock_cls:
            mock_cls.return_value.complete.side_effect = ["points", "analysis"]
            runner.invoke(app, ["analyze", "-l", "01-LOG", "--noninteractive"])

        mock_cls.assert_called_once_with(
            endpoint=ENDPOINT,
            headers={
                "Content-Type": "application/json",
                "Authorization": "secret-key",
                "OpenAI-Api-Key": "openai-key",
            },
            model="gpt-4o",
            timeout=60.0,
        )

    def test_key_points_request_embeds_log(self, config, transport):
        """Test the first request carries the log inside a context block."""
        transport.complete.side_effect = ["points", "analysis"]

        runner.invoke(app, ["analyze", "-l", "01-LOG", "--noninteractive"])

        first_messages = transport.complete.call_args_list[0].args[0]
        assert len(first_messages) == 1
        assert "<context>" in first_messages[0].content
        # Double quotes in the log are replaced before embedding
        assert "msg='OOMKilled'" in first_messages[0].content

    def test_output_option(self, config, transport, tmp_path):
        """Test --output overrides the configured report path."""
        transport.complete.side_effect = ["points", "analysis"]
        report_path = tmp_path / "reports" / "myapp.md"

        result = runner.invoke(
            app, ["analyze", "-l", "01-LOG", "--noninteractive", "-o", str(report_path)]
        )

        assert result.exit_code == 0, result.output
        assert report_path.exists()

    def test_interactive_chat(self, config, transport):
        """Test follow-up questions extend the conversation until exit."""
        transport.complete.side_effect = ["- OOMKilled", "Increase limits.memory."]

        result = runner.invoke(
            app, ["analyze", "-l", "01-LOG"], input="How do I fix it?\nexit\n"
        )

        assert result.exit_code == 0, result.output
        assert "Exiting chat session." in result.stdout
        assert transport.complete.call_count == 2

        chat_messages = transport.complete.call_args_list[1].args[0]
        assert [m.role for m in chat_messages] == [Role.SYSTEM, Role.USER, Role.USER]
        assert chat_messages[1].content.endswith("- OOMKilled")
        assert chat_messages[2].content == "How do I fix it?"

    def test_interactive_end_of_input(self, config, transport):
        """Test end of input ends the chat session."""
        transport.complete.return_value = "points"

        result = runner.invoke(app, ["analyze", "-l", "01-LOG"], input="")

        assert result.exit_code == 0, result.output
        assert transport.complete.call_count == 1

    def test_streaming(self, config, transport, tmp_path):
        """Test --stream renders fragments as they arrive."""
        def fake_complete(messages, stream=False, chunk_delay=0.0, on_fragment=None, cancel=None):
            for fragment in ("Crash", "Loop"):
                on_fragment(fragment)
            return "CrashLoop"

        transport.complete.side_effect = fake_complete

        result = runner.invoke(
            app, ["analyze", "-l", "01-LOG", "--stream", "--delay", "50", "--noninteractive"]
        )

        assert result.exit_code == 0, result.output
        assert "CrashLoop" in (tmp_path / "output.md").read_text()
        kwargs = transport.complete.call_args_list[0].kwargs
        assert kwargs["stream"] is True
        assert kwargs["chunk_delay"] == 0.05

    def test_missing_log(self, config, transport):
        """Test an unmatched log name exits with an error."""
        result = runner.invoke(app, ["analyze", "-l", "99-LOG"])

        assert result.exit_code == 1
        assert "No files found matching pattern" in result.output
        transport.complete.assert_not_called()

    def test_missing_credentials(self, config, transport, monkeypatch):
        """Test a missing credential variable exits with an error."""
        monkeypatch.delenv("K8s_APIKEY")

        result = runner.invoke(app, ["analyze", "-l", "01-LOG"])

        assert result.exit_code == 1
        assert "K8s_APIKEY environment variable is not set." in result.output

    def test_missing_endpoint(self, config, transport):
        """Test a missing endpoint exits with an error."""
        config.llm_endpoint = None

        result = runner.invoke(app, ["analyze", "-l", "01-LOG"])

        assert result.exit_code == 1
        assert "LOGSLEUTH_LLM_ENDPOINT" in result.output

    def test_remote_error(self, config, transport):
        """Test a failed request exits with the status and body."""
        transport.complete.side_effect = RemoteError(500, "oops")

        result = runner.invoke(app, ["analyze", "-l", "01-LOG"])

        assert result.exit_code == 1
        assert "500" in result.output
        assert "oops" in result.output

    def test_keyboard_interrupt(self, config, transport):
        """Test Ctrl-C exits with status 130."""
        transport.complete.side_effect = KeyboardInterrupt

        result = runner.invoke(app, ["analyze", "-l", "01-LOG"])

        assert result.exit_code == 130

    def test_trace(self, config, transport, tmp_path):
        """Test --trace writes a trace log."""
        transport.complete.side_effect = ["points", "analysis"]
        trace_dir = tmp_path / "trace"

        result = runner.invoke(
            app, ["analyze", "-l", "01-LOG", "--noninteractive", "--trace", str(trace_dir)]
        )

        assert result.exit_code == 0, result.output
        assert (trace_dir / "logsleuth_trace.log").exists()


class TestQueryCommand:
    """Tests for the query command."""

    def test_prints_query(self, config):
        """Test the Loki command is printed."""
        result = runner.invoke(app, ["query", "-l", "01-LOG"])

        assert result.exit_code == 0, result.output
        assert "curl -G 'https://loki-gatewayK8s.K8s.cloud/loki/api/v1/query_range'" in result.stdout
        assert "start=2024-10-16T21%3A15%3A47Z" in result.stdout

    def test_log_dir_option(self, config, tmp_path):
        """Test --log-dir overrides the configured directory."""
        other = tmp_path / "other"
        other.mkdir()
        (other / "07-LOG.txt").write_text("namespace payments")

        result = runner.invoke(app, ["query", "-l", "07-LOG", "--log-dir", str(other)])

        assert result.exit_code == 0, result.output
        assert "namespace%3D%22payments%22" in result.stdout

    def test_missing_log(self, config):
        """Test an unmatched log name exits with an error."""
        result = runner.invoke(app, ["query", "-l", "99-LOG"])

        assert result.exit_code == 1


class TestErrorTracing:
    """Tests for errors written to the trace log."""

    def test_error_recorded_in_trace(self, config, transport, tmp_path):
        """Test a failed request is recorded in the trace log."""
        transport.complete.side_effect = RemoteError(502, "bad gateway")
        trace_dir = tmp_path / "trace"

        result = runner.invoke(app, ["analyze", "-l", "01-LOG", "--trace", str(trace_dir)])

        assert result.exit_code == 1
        content = (trace_dir / "logsleuth_trace.log").read_text()
        assert "Analysis failed" in content
        assert "RemoteError" in content


class TestQueryOutput:
    """Tests for query output suitable for piping."""

    def test_stdout_holds_only_commands(self, config):
        """Test status lines go to stderr so stdout can be piped to a shell."""
        with patch("logsleuth.cli.err_console") as mock_err_console:
            result = runner.invoke(app, ["query", "-l", "01-LOG"])

        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert lines
        assert all(line.startswith("curl -G ") for line in lines)
        printed = mock_err_console.print.call_args.args[0]
        assert printed.startswith("Processing file:")


def test_analyze_help_describes_log_selection():
    """Test the help text names the --log value as the file name prefix."""
    assert "whose name starts with the --log value" in " ".join(analyze.__doc__.split())
