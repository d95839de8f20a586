"""TCP port prober.

A probe is a single connection attempt with a hard deadline. The connection is
closed as soon as it is established; nothing is sent over it. Every failure mode
(timeout, refusal, unreachable network, DNS failure, malformed endpoint) is folded
into a failed `ProbeResult` rather than raised.
"""

import asyncio
import contextlib
import time
from datetime import datetime, timezone

from app.portwatch.core.types import SUCCESS_MESSAGE, ProbeResult


# Timestamp layout used in failure diagnostics, e.g. 2024-03-01-14:05:09.
DIAGNOSTIC_TIME_FORMAT = "%Y-%m-%d-%H:%M:%S"

# A zero or negative TIMEOUT would fail every probe instantly.
MIN_PROBE_TIMEOUT = 0.1


def split_host_port(endpoint: str) -> tuple[str, int]:
    """Split `host:port` (or `[v6addr]:port`) into its parts.

    Raises:
        ValueError: If the port is missing, not numeric or out of range.
    """
    host, sep, port_text = endpoint.rpartition(":")
    if not sep or not host:
        raise ValueError(f"missing port in address {endpoint!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not port_text.isdigit():
        raise ValueError(f"invalid port {port_text!r} in address {endpoint!r}")
    port = int(port_text)
    if not 0 < port < 65536:
        raise ValueError(f"port {port} out of range in address {endpoint!r}")
    return host, port


def describe_error(exc: BaseException, timeout: float) -> str:
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return f"i/o timeout after {timeout:g}s"
    return str(exc) or type(exc).__name__


def format_failure(endpoint: str, node_id: str, error: str, when: datetime) -> str:
    """Build the timestamped diagnostic attached to a failed probe."""
    stamp = when.astimezone().strftime(DIAGNOSTIC_TIME_FORMAT)
    return f"{stamp} Node({node_id}) Error: No Connection to '{endpoint}' -- {error}"


async def probe_endpoint(endpoint: str, timeout: float, node_id: str = "") -> ProbeResult:
    """Attempt one TCP connection to `endpoint` within `timeout` seconds.

    Args:
        endpoint: Target in `host:port` form.
        timeout: Hard deadline for the connection attempt, in seconds.
        node_id: Identity of the probing node, quoted in failure diagnostics.

    Returns:
        ProbeResult: `failed=False` with message "Success" when the connection was
        established, otherwise `failed=True` with a timestamped diagnostic.
    """
    deadline = max(float(timeout), MIN_PROBE_TIMEOUT)
    started = time.perf_counter()

    try:
        host, port = split_host_port(endpoint)
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=deadline
        )
    except (OSError, ValueError, asyncio.TimeoutError) as exc:
        now = datetime.now(timezone.utc)
        return ProbeResult(
            endpoint=endpoint,
            failed=True,
            message=format_failure(endpoint, node_id, describe_error(exc, deadline), now),
            checked_at=now,
            duration_seconds=time.perf_counter() - started,
        )

    writer.close()
    # The peer may reset the connection while we hang up; the probe already succeeded.
    with contextlib.suppress(OSError):
        await writer.wait_closed()

    return ProbeResult(
        endpoint=endpoint,
        failed=False,
        message=SUCCESS_MESSAGE,
        duration_seconds=time.perf_counter() - started,
    )
