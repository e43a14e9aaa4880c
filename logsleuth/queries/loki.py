"""Loki query extraction from free-form pod log text.

Pulls the namespace, pod name and UTC timestamps out of raw log text and
turns them into a ``query_range`` request against the Loki gateway, rendered
as a ready-to-run ``curl`` command::

    curl -G 'https://loki/.../query_range' --data-urlencode 'end=...&limit=1000&query=...&start=...'

Extraction is lenient: a field that cannot be found is left out of the
query instead of failing the whole command.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlencode

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_LOKI_URL = "https://loki-gatewayK8s.K8s.cloud/loki/api/v1/query_range"
DEFAULT_LIMIT = 1000

# Window used when the log holds a single timestamp
SINGLE_TIMESTAMP_WINDOW = timedelta(minutes=5)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

NAMESPACE_PATTERN = re.compile(r"namespace (\w[\w\-]*)", re.ASCII)
POD_PATTERN = re.compile(r"pod (\w[\w\-]*)", re.ASCII)
TIMESTAMP_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z)")

_COMMAND_PATTERN = re.compile(r"--data-urlencode '([^']*)'")
_MATCHER_PATTERN = re.compile(r'(\w+)="([^"]*)"')


class ExtractionError(Exception):
    """Raised when a well-formed query command cannot be built."""

    pass


@dataclass(frozen=True)
class LogFields:
    """Structured fields found in a log.

    Attributes:
        namespace: Kubernetes namespace, if mentioned
        pod: Pod name, if mentioned
        start: Start of the query window (UTC)
        end: End of the query window (UTC)
    """

    namespace: Optional[str] = None
    pod: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def extract_value(content: str, pattern: re.Pattern) -> Optional[str]:
    """Return the first capture group of the first match, or None."""
    match = pattern.search(content)
    if match:
        return match.group(1)
    return None


def extract_timestamps(content: str) -> List[datetime]:
    """Return every valid UTC timestamp in the text, in text order.

    Matches that look like timestamps but are not valid dates
    (e.g. ``2024-13-40T25:00:00Z``) are skipped.
    """
    timestamps = []
    for raw in TIMESTAMP_PATTERN.findall(content):
        try:
            parsed = datetime.strptime(raw, TIMESTAMP_FORMAT)
        except ValueError:
            logger.debug(f"Skipping invalid timestamp: {raw}")
            continue
        timestamps.append(parsed.replace(tzinfo=timezone.utc))
    return timestamps


def time_range(timestamps: List[datetime]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Derive the query window from timestamps in text order.

    Strategy:
    - two or more: first to last occurrence
    - exactly one: that instant plus five minutes
    - none: no window
    """
    if len(timestamps) >= 2:
        return timestamps[0], timestamps[-1]
    if len(timestamps) == 1:
        return timestamps[0], timestamps[0] + SINGLE_TIMESTAMP_WINDOW
    return None, None


def extract_fields(log_text: str) -> LogFields:
    """Extract namespace, pod and time window from raw log text."""
    start, end = time_range(extract_timestamps(log_text))
    return LogFields(
        namespace=extract_value(log_text, NAMESPACE_PATTERN),
        pod=extract_value(log_text, POD_PATTERN),
        start=start,
        end=end,
    )


def build_filter(fields: LogFields) -> str:
    """Build the LogQL stream selector, namespace first.

    Absent fields are left out; with neither present the selector is ``{}``.
    """
    matchers = []
    if fields.namespace:
        matchers.append(f'namespace="{fields.namespace}"')
    if fields.pod:
        matchers.append(f'pod="{fields.pod}"')
    return "{" + ", ".join(matchers) + "}"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def build_query_command(
    fields: LogFields,
    loki_url: str = DEFAULT_LOKI_URL,
    limit: int = DEFAULT_LIMIT,
) -> str:
    """Render the ``curl`` command for one Loki range query.

    Args:
        fields: Extracted log fields
        loki_url: Loki ``query_range`` endpoint
        limit: Maximum number of log lines to return

    Returns:
        Command string with URL-encoded, key-sorted parameters

    Raises:
        ExtractionError: If the endpoint or limit is invalid
    """
    if not loki_url.startswith(("http://", "https://")):
        raise ExtractionError(f"Loki URL must start with http:// or https://: {loki_url}")
    if limit <= 0:
        raise ExtractionError(f"Loki query limit must be positive: {limit}")

    params = {
        "limit": str(limit),
        "query": build_filter(fields),
    }
    if fields.start is not None:
        params["start"] = format_timestamp(fields.start)
    if fields.end is not None:
        params["end"] = format_timestamp(fields.end)

    encoded = urlencode(sorted(params.items()))
    return f"curl -G '{loki_url}' --data-urlencode '{encoded}'"


def extract_queries(
    log_text: str,
    loki_url: str = DEFAULT_LOKI_URL,
    limit: int = DEFAULT_LIMIT,
) -> List[str]:
    """Generate Loki query commands for the given log content.

    Returns:
        List of ready-to-run query commands (currently always one)

    Raises:
        ExtractionError: If a well-formed command cannot be built
    """
    fields = extract_fields(log_text)
    logger.debug(
        f"Extracted log fields: namespace={fields.namespace}, pod={fields.pod}, "
        f"start={fields.start}, end={fields.end}"
    )
    return [build_query_command(fields, loki_url=loki_url, limit=limit)]


def parse_query_params(command: str) -> Dict[str, str]:
    """Decode the parameters of a command built by ``build_query_command``.

    Raises:
        ExtractionError: If the command carries no encoded parameters
    """
    match = _COMMAND_PATTERN.search(command)
    if not match:
        raise ExtractionError(f"No query parameters found in command: {command}")
    return {key: values[0] for key, values in parse_qs(match.group(1)).items()}


def parse_filter(command: str) -> Dict[str, str]:
    """Recover the label matchers of a built command's stream selector."""
    selector = parse_query_params(command).get("query", "{}")
    return dict(_MATCHER_PATTERN.findall(selector))
