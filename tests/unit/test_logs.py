"""Unit tests for log file discovery and loading."""

import pytest

from logsleuth.logs import LogFileError, find_log_files, read_log_text, select_log_file


@pytest.fixture
def log_dir(tmp_path):
    """Create a log directory with a few pod logs."""
    directory = tmp_path / "LOGS"
    directory.mkdir()
    (directory / "02-LOG-api.txt").write_text("api log")
    (directory / "01-LOG-worker.txt").write_text("worker log")
    (directory / "01-LOG-db.txt").write_text("db log")
    (directory / "README.md").write_text("not a log")
    (directory / "01-LOG-archive").mkdir()
    return directory


class TestFindLogFiles:
    """Tests for find_log_files."""

    def test_matches_prefix_sorted(self, log_dir):
        """Test files matching the partial name are returned sorted."""
        names = [path.name for path in find_log_files(log_dir, "01-LOG")]
        assert names == ["01-LOG-db.txt", "01-LOG-worker.txt"]

    def test_no_match(self, log_dir):
        """Test an unmatched name yields an empty list."""
        assert find_log_files(log_dir, "99-LOG") == []

    def test_empty_name_rejected(self, log_dir):
        """Test an empty partial name is rejected."""
        with pytest.raises(LogFileError):
            find_log_files(log_dir, "")


class TestSelectLogFile:
    """Tests for select_log_file."""

    def test_first_match(self, log_dir):
        """Test the first sorted match is chosen."""
        assert select_log_file(log_dir, "01-LOG").name == "01-LOG-db.txt"

    def test_not_found(self, log_dir):
        """Test a missing log raises LogFileError naming the pattern."""
        with pytest.raises(LogFileError, match="No files found matching pattern"):
            select_log_file(log_dir, "99-LOG")

    def test_missing_directory(self, tmp_path):
        """Test a missing directory behaves like no match."""
        with pytest.raises(LogFileError):
            select_log_file(tmp_path / "absent", "01-LOG")


class TestReadLogText:
    """Tests for read_log_text."""

    def test_double_quotes_replaced(self, tmp_path):
        """Test double quotes become single quotes."""
        path = tmp_path / "log.txt"
        path.write_text('level=error msg="connection refused"')

        assert read_log_text(path) == "level=error msg='connection refused'"

    def test_invalid_utf8_replaced(self, tmp_path):
        """Test undecodable bytes do not fail the read."""
        path = tmp_path / "log.txt"
        path.write_bytes(b"ok \xff\xfe end")

        assert read_log_text(path) == "ok �� end"

    def test_unreadable(self, tmp_path):
        """Test read failures raise LogFileError."""
        with pytest.raises(LogFileError, match="Error reading"):
            read_log_text(tmp_path)
