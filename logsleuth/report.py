"""Markdown report for non-interactive runs."""

from pathlib import Path
from typing import Sequence


def build_report(key_points: str, analysis: str, queries: Sequence[str]) -> str:
    """Combine key points, analysis and Loki queries into one Markdown document."""
    parts = [
        "# Key Points\n\n",
        key_points,
        "\n\n# Analysis and Recommendations\n\n",
        analysis,
        "\n\n# Loki Query Commands\n\n",
    ]
    for query in queries:
        parts.append(f"```\n{query}\n```\n\n")
    return "".join(parts)


def write_report(path: Path, content: str) -> Path:
    """Write the report, creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
