"""Defines the probing data types (what is checked and what came back).

`EndpointEntry` is one parsed line of the endpoint list. `ProbeResult` is the
ephemeral outcome of a single TCP connection attempt. `AlertContext` is the set of
fields exposed to alert payload templates.
"""

from datetime import datetime, timezone

from pydantic import Field

from .base import CanonicalModel


SUCCESS_MESSAGE = "Success"


# ═══════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════

class EndpointEntry(CanonicalModel):
    """A single `host:port` target with its free-text comment.

    Attributes:
        address: The first whitespace-delimited token of the line.
        comment: The remainder of the line, empty when absent.

    Example:
        >>> EndpointEntry(address="10.0.0.5:1234", comment="cassandra seed")
        EndpointEntry(address='10.0.0.5:1234', comment='cassandra seed')
    """
    address: str = Field(min_length=1, description="Target in host:port form.")
    comment: str = Field(default="", description="Human note kept for alerts.")


# ═══════════════════════════════════════════════════════════════════════════
# PROBE OUTCOME
# ═══════════════════════════════════════════════════════════════════════════

class ProbeResult(CanonicalModel):
    """Outcome of a single TCP connection attempt.

    Attributes:
        endpoint: The probed `host:port` string.
        failed: True when no connection could be established within the deadline.
        message: "Success", or a timestamped diagnostic naming the node, the
            endpoint and the underlying error.
        checked_at: UTC time the attempt finished.
        duration_seconds: Wall time spent on the attempt.
    """
    endpoint: str
    failed: bool
    message: str = SUCCESS_MESSAGE
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def up(self) -> float:
        """Gauge value for this result: 1.0 reachable, 0.0 unreachable."""
        return 0.0 if self.failed else 1.0


# ═══════════════════════════════════════════════════════════════════════════
# ALERTING
# ═══════════════════════════════════════════════════════════════════════════

class AlertContext(CanonicalModel):
    """Fields available to alert payload templates."""
    node_ip: str = ""
    cluster_name: str = ""
    comment: str = ""
    host_port: str
    errmsg: str
