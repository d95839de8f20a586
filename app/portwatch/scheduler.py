"""Endpoint polling loop.

`PollScheduler` probes every configured endpoint, applies the outcomes to the
health gauges and then sleeps for the rescan interval, forever. It runs as a
background task next to the HTTP server; the two only share the metrics
registry.

Probes within a cycle run concurrently, bounded by `MAX_CONCURRENT_PROBES`, but
their results are applied in endpoint-list order. The aggregate gauge therefore
always ends a cycle holding the status of the last endpoint in the list, exactly
as a sequential scan would leave it.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable

from app.config import Settings
from app.portwatch.core.logging_config import bound_contextvars, get_logger
from app.portwatch.core.types import AlertContext, EndpointEntry, ProbeResult
from app.portwatch.endpoints import is_probe_target
from app.portwatch.errors import PortwatchError
from app.portwatch.metrics import HealthMetrics
from app.portwatch.notifier import WebhookNotifier
from app.portwatch.prober import format_failure, probe_endpoint

logger = get_logger(__name__)


# RESCAN=0 would otherwise spin the event loop.
MIN_RESCAN_SECONDS = 1.0

Prober = Callable[[str, float, str], Awaitable[ProbeResult]]
Sleeper = Callable[[float], Awaitable[None]]


class PollScheduler:
    """Runs poll cycles at a fixed interval and owns the health metrics.

    Args:
        settings: Immutable configuration (endpoints, timeouts, node identity).
        metrics: Gauge owner updated after every probe.
        prober: Coroutine performing a single probe.
        notifier: Optional webhook notifier called for failed probes.
        sleep: Coroutine used between cycles; replaced in tests.
        clock: Monotonic clock used to measure cycle duration.
    """

    def __init__(
        self,
        settings: Settings,
        metrics: HealthMetrics,
        prober: Prober = probe_endpoint,
        notifier: WebhookNotifier | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.notifier = notifier
        self._prober = prober
        self._sleep = sleep
        self._clock = clock
        self._entries = [e for e in settings.endpoint_entries if is_probe_target(e.address)]
        self.cycles = 0

    @property
    def endpoints(self) -> list[str]:
        return [entry.address for entry in self._entries]

    @property
    def interval(self) -> float:
        """Seconds slept between cycles, never below MIN_RESCAN_SECONDS."""
        return max(float(self.settings.RESCAN), MIN_RESCAN_SECONDS)

    async def _probe(self, entry: EndpointEntry, semaphore: asyncio.Semaphore) -> ProbeResult:
        async with semaphore:
            logger.info("Checking", endpoint=entry.address)
            try:
                return await self._prober(entry.address, self.settings.TIMEOUT, self.settings.NODEIP)
            except Exception as exc:
                logger.exception("Prober raised", endpoint=entry.address)
                now = datetime.now(timezone.utc)
                return ProbeResult(
                    endpoint=entry.address,
                    failed=True,
                    message=format_failure(entry.address, self.settings.NODEIP, str(exc), now),
                    checked_at=now,
                )

    async def _alert(self, entry: EndpointEntry, result: ProbeResult) -> None:
        context = AlertContext(
            node_ip=self.settings.NODEIP,
            cluster_name=self.settings.CLUSTERNAME,
            comment=entry.comment,
            host_port=entry.address,
            errmsg=result.message,
        )
        try:
            await self.notifier.alert(context)
        except PortwatchError as exc:
            logger.error("Alert not sent", endpoint=entry.address, error=str(exc))
        except Exception:
            logger.exception("Alert not sent", endpoint=entry.address)

    async def run_cycle(self) -> list[ProbeResult]:
        """Probe every endpoint once and update the gauges.

        Returns:
            The probe results, in endpoint-list order. Empty when no endpoints
            are configured.
        """
        if not self._entries:
            logger.debug("No endpoints configured, nothing to probe")
            return []

        semaphore = asyncio.Semaphore(max(1, self.settings.MAX_CONCURRENT_PROBES))
        results = await asyncio.gather(*(self._probe(entry, semaphore) for entry in self._entries))

        failures = []
        for entry, result in zip(self._entries, results):
            self.metrics.record(result)
            if result.failed:
                logger.warning("Failed", endpoint=entry.address, detail=result.message)
                failures.append((entry, result))
            else:
                logger.info(
                    "Success",
                    endpoint=entry.address,
                    duration_ms=round(result.duration_seconds * 1000, 1),
                )

        # Gauges are final before any webhook is contacted.
        if self.notifier is not None and failures:
            await asyncio.gather(*(self._alert(entry, result) for entry, result in failures))
        return list(results)

    async def run_forever(self) -> None:
        """Run poll cycles until the task is cancelled."""
        while True:
            self.cycles += 1
            started = self._clock()
            with bound_contextvars(cycle=self.cycles):
                logger.info("Polling", endpoints=len(self._entries))
                try:
                    await self.run_cycle()
                except Exception:
                    logger.exception("Poll cycle failed")

                elapsed = self._clock() - started
                if elapsed > self.interval:
                    logger.warning(
                        "Poll cycle overran the rescan interval",
                        elapsed_seconds=round(elapsed, 3),
                        rescan_seconds=self.interval,
                    )
            await self._sleep(self.interval)
