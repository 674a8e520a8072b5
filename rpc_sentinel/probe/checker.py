"""Periodic health checker for blockchain RPC endpoints.

Runs an asyncio background task that, once per interval, probes every
configured endpoint, decodes the returned block height and updates the
metrics sink. Every failure is contained to its own endpoint and cycle;
the next tick is the only recovery.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence

from rpc_sentinel.config.schema import EndpointConfig
from rpc_sentinel.constants import DEFAULT_METHOD, PROBE_TIMEOUT
from rpc_sentinel.errors import CallError, ProbeError
from rpc_sentinel.probe.client import RpcClient
from rpc_sentinel.probe.hexutil import hex_to_int
from rpc_sentinel.probe.models import FailureReason, ProbeOutcome, ProbeState
from rpc_sentinel.telemetry.sink import MetricsSink

logger = logging.getLogger(__name__)

_REASON_BY_KIND = {reason.value: reason for reason in FailureReason}


class HealthChecker:
    """Background probe scheduler.

    Parameters
    ----------
    client:
        The :class:`RpcClient` used for every probe.
    sink:
        The :class:`MetricsSink` receiving gauge updates.
    endpoints:
        Endpoints to probe, in configuration order.
    method:
        JSON-RPC method called on each endpoint (no params).
    interval:
        Seconds between cycles. The first cycle runs one full interval
        after :meth:`start` unless *run_on_start* is set.
    probe_timeout:
        Deadline in seconds for each individual probe.
    concurrent:
        Probe endpoints in parallel (default) or one after another.
    """

    def __init__(
        self,
        client: RpcClient,
        sink: MetricsSink,
        endpoints: Sequence[EndpointConfig],
        *,
        method: str = DEFAULT_METHOD,
        interval: float = 300.0,
        probe_timeout: float = PROBE_TIMEOUT,
        concurrent: bool = True,
        run_on_start: bool = False,
    ) -> None:
        self._client = client
        self._sink = sink
        self._endpoints = tuple(endpoints)
        self._method = method
        self._interval = interval
        self._probe_timeout = probe_timeout
        self._concurrent = concurrent
        self._run_on_start = run_on_start

        self._states: Dict[str, ProbeState] = {ep.name: ProbeState.IDLE for ep in self._endpoints}
        self._cycles_started = 0
        self._cycles_completed = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._cycle_tasks: set[asyncio.Task[List[ProbeOutcome]]] = set()
        self._stopped = asyncio.Event()

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def endpoints(self) -> Sequence[EndpointConfig]:
        return self._endpoints

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    def get_states(self) -> Dict[str, ProbeState]:
        """Snapshot of where each endpoint is within the current cycle."""
        return dict(self._states)

    def start(self) -> None:
        """Launch the background tick loop."""
        if self.running:
            logger.warning("Health checker already running.")
            return
        self._stopped.clear()
        self._task = asyncio.create_task(self._run(), name="health-checker")
        logger.info(
            "Health checker started (%d endpoint(s), interval=%.0fs, probe_timeout=%.0fs, method=%s)",
            len(self._endpoints),
            self._interval,
            self._probe_timeout,
            self._method,
        )

    async def stop(self) -> None:
        """Stop ticking and abandon in-flight cycles."""
        self._stopped.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        pending = list(self._cycle_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Health checker stopped.")

    async def run_cycle(self) -> List[ProbeOutcome]:
        """Probe every endpoint once and return the outcomes in config order."""
        self._cycles_started += 1
        cycle_no = self._cycles_started
        logger.debug("Cycle %d: probing %d endpoint(s)", cycle_no, len(self._endpoints))

        if self._concurrent:
            outcomes = list(await asyncio.gather(*(self.check_endpoint(ep) for ep in self._endpoints)))
        else:
            outcomes = [await self.check_endpoint(ep) for ep in self._endpoints]

        self._cycles_completed += 1
        healthy = sum(1 for o in outcomes if o.is_healthy)
        logger.info("Cycle %d complete: %d/%d endpoint(s) healthy", cycle_no, healthy, len(outcomes))
        return outcomes

    async def check_endpoint(self, endpoint: EndpointConfig) -> ProbeOutcome:
        """Probe a single endpoint and update its gauges."""
        name = endpoint.name
        self._states[name] = ProbeState.PROBING
        logger.info("[%s] Checking %s with method %s", name, endpoint.url, self._method)

        start = time.monotonic()
        try:
            # Engine-side deadline; the client is handed the same budget.
            raw = await asyncio.wait_for(
                self._client.call(endpoint.url, self._method, deadline=self._probe_timeout),
                timeout=self._probe_timeout,
            )
            logger.debug("[%s] Raw result from %s: %r", name, endpoint.url, raw)
            block_number = hex_to_int(raw)
        except ProbeError as exc:
            return self._record_failure(endpoint, exc, start)
        except asyncio.TimeoutError as exc:
            wrapped = CallError(
                f"Probe exceeded the {self._probe_timeout:g}s deadline",
                url=endpoint.url,
                orig_exc=exc,
            )
            return self._record_failure(endpoint, wrapped, start)
        except Exception as exc:
            logger.exception("[%s] Unexpected error while probing %s", name, endpoint.url)
            wrapped = CallError("Unexpected probe failure", url=endpoint.url, orig_exc=exc)
            return self._record_failure(endpoint, wrapped, start)

        latency_ms = (time.monotonic() - start) * 1000.0
        self._sink.record_healthy(name, block_number)
        self._states[name] = ProbeState.HEALTHY
        logger.info(
            "[%s] Block number from %s: %d (%.0fms)",
            name,
            endpoint.url,
            block_number,
            latency_ms,
        )
        return ProbeOutcome.healthy(name, block_number, latency_ms)

    # ── Internal ─────────────────────────────────────────────────────────

    def _record_failure(
        self,
        endpoint: EndpointConfig,
        exc: ProbeError,
        start: float,
    ) -> ProbeOutcome:
        latency_ms = (time.monotonic() - start) * 1000.0
        reason = _REASON_BY_KIND.get(exc.kind, FailureReason.CALL)
        self._sink.record_unhealthy(endpoint.name)
        self._states[endpoint.name] = ProbeState.UNHEALTHY
        logger.warning(
            "[%s] Unhealthy (%s error) calling %s on %s: %s",
            endpoint.name,
            reason.value,
            self._method,
            endpoint.url,
            exc,
        )
        return ProbeOutcome.unhealthy(endpoint.name, reason, str(exc), latency_ms)

    def _spawn_cycle(self) -> None:
        # A slow cycle overlaps the next tick rather than delaying it.
        task = asyncio.create_task(self.run_cycle(), name=f"probe-cycle-{self._cycles_started + 1}")
        self._cycle_tasks.add(task)
        task.add_done_callback(self._cycle_tasks.discard)

    async def _run(self) -> None:
        """Tick every interval; no catch-up for missed ticks."""
        if self._run_on_start:
            self._spawn_cycle()
        while not self._stopped.is_set():
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self._interval)
                break  # stopped was set
            except asyncio.TimeoutError:
                pass  # interval elapsed
            self._spawn_cycle()
