"""Prometheus metrics owned by the poll scheduler.

`HealthMetrics` holds its own `CollectorRegistry` so nothing is registered on the
process-wide default registry and tests can build as many instances as they like.
The scheduler writes through `record()`; the HTTP layer only reads, via `render()`.

Exported series (with the default namespace/name)::

    strongswan_cassandratest                      1 if the last probed endpoint was up
    strongswan_cassandratest_endpoint_up{endpoint} 1/0 per endpoint
    strongswan_cassandratest_probes_total{result}  probe attempts by outcome
    strongswan_cassandratest_probe_duration_seconds
    strongswan_cassandratest_scrape_requests_total
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from app.portwatch.core.types import ProbeResult


class HealthMetrics:
    """Up/down gauges plus probe and scrape accounting."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(
        self,
        namespace: str = "strongswan",
        name: str = "cassandratest",
        registry: CollectorRegistry | None = None,
        include_process_metrics: bool = True,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.gauge_name = "_".join(part for part in (namespace, name) if part)

        self._up = Gauge(
            name,
            "1 is connected, 0 is disconnected (last probed endpoint)",
            namespace=namespace,
            registry=self.registry,
        )
        self._endpoint_up = Gauge(
            f"{name}_endpoint_up",
            "1 is connected, 0 is disconnected",
            ["endpoint"],
            namespace=namespace,
            registry=self.registry,
        )
        self._probes = Counter(
            f"{name}_probes",
            "Probe attempts by outcome",
            ["result"],
            namespace=namespace,
            registry=self.registry,
        )
        self._probe_duration = Histogram(
            f"{name}_probe_duration_seconds",
            "Time spent on a single TCP connection attempt",
            namespace=namespace,
            registry=self.registry,
        )
        self._scrapes = Counter(
            f"{name}_scrape_requests",
            "Requests served by the metrics endpoint",
            namespace=namespace,
            registry=self.registry,
        )

        if include_process_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

    def record(self, result: ProbeResult) -> None:
        """Apply a probe outcome to the aggregate and per-endpoint gauges."""
        self._up.set(result.up)
        self._endpoint_up.labels(endpoint=result.endpoint).set(result.up)
        self._probes.labels(result="failure" if result.failed else "success").inc()
        self._probe_duration.observe(result.duration_seconds)

    @property
    def up(self) -> float:
        """Current value of the aggregate gauge."""
        return self.registry.get_sample_value(self.gauge_name) or 0.0

    def endpoint_up(self, endpoint: str) -> float | None:
        """Current gauge value for `endpoint`, or None if it was never probed."""
        return self.registry.get_sample_value(
            f"{self.gauge_name}_endpoint_up", {"endpoint": endpoint}
        )

    def record_scrape(self) -> None:
        self._scrapes.inc()

    def render(self) -> bytes:
        """Serialize the registry in the Prometheus text exposition format."""
        return generate_latest(self.registry)
