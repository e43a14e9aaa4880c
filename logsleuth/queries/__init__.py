"""
Log query builders.

Derives ready-to-run log backend queries (Loki) from raw pod log text.
"""

from .loki import ExtractionError, LogFields, extract_fields, extract_queries, parse_filter

__all__ = [
    "ExtractionError",
    "LogFields",
    "extract_fields",
    "extract_queries",
    "parse_filter",
]
