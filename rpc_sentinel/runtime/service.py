"""Sentinel runtime service — wires config, probe client, sink and checker.

SentinelService owns the RPC client and the health checker, and shares a
single :class:`MetricsSink` with whoever serves ``/metrics``.

Usage::

    service = SentinelService(config)
    await service.start()
    # ... /metrics is being served from service.sink ...
    await service.stop()
"""

import logging
from typing import List, Optional

from rpc_sentinel.config.schema import SentinelConfig
from rpc_sentinel.probe.checker import HealthChecker
from rpc_sentinel.probe.client import HttpRpcClient, RpcClient
from rpc_sentinel.probe.models import ProbeOutcome
from rpc_sentinel.runtime.models import ServiceState, is_valid_transition
from rpc_sentinel.telemetry.sink import MetricsSink

logger = logging.getLogger(__name__)


class _InvalidStateTransition(Exception):
    """Raised internally when an illegal state transition is attempted."""

    def __init__(self, current: ServiceState, target: ServiceState) -> None:
        super().__init__(f"Invalid state transition: {current.value} → {target.value}")
        self.current = current
        self.target = target


class SentinelService:
    """Lifecycle of the probe engine.

    Parameters
    ----------
    config:
        The validated configuration.
    sink:
        Gauge sink; a fresh one is created when omitted.
    client:
        Probe client; an :class:`HttpRpcClient` tuned from ``config.probe``
        is created when omitted.
    """

    def __init__(
        self,
        config: SentinelConfig,
        *,
        sink: Optional[MetricsSink] = None,
        client: Optional[RpcClient] = None,
    ) -> None:
        self._config = config
        self._state = ServiceState.PENDING
        self._sink = sink if sink is not None else MetricsSink()
        self._client: RpcClient = client if client is not None else HttpRpcClient(
            timeout=config.probe.timeout,
            connect_timeout=config.probe.connect_timeout,
            max_idle_connections=config.probe.max_idle_connections,
            idle_timeout=config.probe.idle_timeout,
        )
        self._checker = HealthChecker(
            self._client,
            self._sink,
            config.endpoints,
            method=config.method,
            interval=config.interval_seconds,
            probe_timeout=config.probe.timeout,
            concurrent=config.probe.concurrent,
        )
        logger.info("SentinelService initialized (state=%s).", self._state.value)

    # ── Properties ──────────────────────────────────────────────────────

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def config(self) -> SentinelConfig:
        return self._config

    @property
    def sink(self) -> MetricsSink:
        return self._sink

    @property
    def checker(self) -> HealthChecker:
        return self._checker

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the interval scheduler. The first cycle runs after one interval."""
        self._transition(ServiceState.RUNNING)
        self._checker.start()

    async def stop(self) -> None:
        """Stop the scheduler and release the connection pool. Idempotent."""
        if self._state in (ServiceState.STOPPING, ServiceState.STOPPED):
            return
        if self._state is ServiceState.RUNNING:
            self._transition(ServiceState.STOPPING)
            await self._checker.stop()
        await self._client.aclose()
        self._transition(ServiceState.STOPPED)

    async def run_once(self) -> List[ProbeOutcome]:
        """Run a single cycle immediately, outside the scheduler."""
        return await self._checker.run_cycle()

    # ── Internal ────────────────────────────────────────────────────────

    def _transition(self, target: ServiceState) -> None:
        if not is_valid_transition(self._state, target):
            raise _InvalidStateTransition(self._state, target)
        logger.debug("Service state: %s → %s", self._state.value, target.value)
        self._state = target
