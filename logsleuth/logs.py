"""Log file discovery and loading.

Log files are picked from a directory by partial file name: ``01-LOG``
matches ``LOGS/01-LOG*``. When several files match, the first one in sorted
order is used.
"""

from pathlib import Path
from typing import List

import structlog

logger = structlog.get_logger(__name__)


class LogFileError(Exception):
    """Raised when a log file cannot be found or read."""


def find_log_files(directory: Path, partial_name: str) -> List[Path]:
    """Return the files in ``directory`` whose name starts with ``partial_name``, sorted."""
    if not partial_name:
        raise LogFileError("A partial log file name is required")
    return sorted(path for path in directory.glob(f"{partial_name}*") if path.is_file())


def select_log_file(directory: Path, partial_name: str) -> Path:
    """Pick the first log file matching ``partial_name``.

    Raises:
        LogFileError: If no file matches
    """
    matches = find_log_files(directory, partial_name)
    if not matches:
        raise LogFileError(f"No files found matching pattern: {directory / partial_name}*")
    if len(matches) > 1:
        logger.info(f"{len(matches)} files match '{partial_name}', using {matches[0].name}")
    return matches[0]


def read_log_text(path: Path) -> str:
    """Read a log file for embedding in a prompt.

    Invalid UTF-8 bytes are replaced and double quotes become single quotes.

    Raises:
        LogFileError: If the file cannot be read
    """
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise LogFileError(f"Error reading {path}: {e}") from e
    return content.replace('"', "'")
