"""Parsing of the newline-delimited endpoint list.

The list is usually mounted from a ConfigMap into the `ENDPOINTS` environment
variable, one target per line::

    # cassandra seeds
    10.0.0.5:9042  seed-a
    10.0.0.6:9042  seed-b

Blank lines and `#` comment lines are skipped. The first whitespace-delimited token
of every other line is the endpoint; the rest of the line is its comment.
"""

from app.portwatch.core.types import EndpointEntry


COMMENT_PREFIX = "#"


def is_probe_target(line: str) -> bool:
    """Return True when `line` names an endpoint (not blank, not a comment)."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith(COMMENT_PREFIX)


def parse_endpoint_line(line: str) -> EndpointEntry:
    """Split a single endpoint line into its address and comment.

    Args:
        line: A line already accepted by `is_probe_target`.

    Returns:
        The parsed entry.
    """
    parts = line.strip().split(maxsplit=1)
    comment = parts[1] if len(parts) > 1 else ""
    return EndpointEntry(address=parts[0], comment=comment)


def parse_endpoint_list(text: str) -> list[EndpointEntry]:
    """Parse the raw endpoint list, preserving the order of the entries.

    Args:
        text: Newline-delimited list, possibly empty.

    Returns:
        One entry per non-blank, non-comment line.
    """
    return [parse_endpoint_line(line) for line in text.splitlines() if is_probe_target(line)]
