"""Prometheus gauge sink shared by the health checker and the /metrics route.

One :class:`MetricsSink` is built at startup and passed to both sides. It
owns a private ``CollectorRegistry`` rather than the process-global one.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from rpc_sentinel.constants import (
    BLOCK_NUMBER_METRIC,
    ENDPOINT_LABEL,
    RPC_HEALTHY_METRIC,
)

logger = logging.getLogger(__name__)


class MetricsSink:
    """Labelled gauges with last-write-wins ``set`` semantics.

    A single lock serialises writes and :meth:`render` so a scrape never
    observes ``healthy=1`` without the block number written with it.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self._registry = registry if registry is not None else CollectorRegistry()
        self._lock = threading.Lock()
        self._gauges: Dict[str, Gauge] = {
            RPC_HEALTHY_METRIC: Gauge(
                RPC_HEALTHY_METRIC,
                "Indicates if the blockchain RPC endpoint is healthy "
                "(1 for healthy, 0 for unhealthy).",
                [ENDPOINT_LABEL],
                registry=self._registry,
            ),
            BLOCK_NUMBER_METRIC: Gauge(
                BLOCK_NUMBER_METRIC,
                "The current block number of the blockchain.",
                [ENDPOINT_LABEL],
                registry=self._registry,
            ),
        }

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    # ── Writes ───────────────────────────────────────────────────────

    def set_gauge(self, series: str, label: str, value: float) -> None:
        """Overwrite ``series{endpoint=label}``. Unknown series raise ``KeyError``."""
        gauge = self._gauges[series]
        with self._lock:
            gauge.labels(label).set(value)

    def record_healthy(self, label: str, block_number: int) -> None:
        """Write ``healthy=1`` and the block number as one step."""
        with self._lock:
            self._gauges[RPC_HEALTHY_METRIC].labels(label).set(1)
            self._gauges[BLOCK_NUMBER_METRIC].labels(label).set(float(block_number))

    def record_unhealthy(self, label: str) -> None:
        """Write ``healthy=0``; the last block number is left as it was."""
        with self._lock:
            self._gauges[RPC_HEALTHY_METRIC].labels(label).set(0)

    # ── Reads ────────────────────────────────────────────────────────

    def get_gauge(self, series: str, label: str) -> Optional[float]:
        """Return the current value, or ``None`` if never written."""
        if series not in self._gauges:
            raise KeyError(series)
        with self._lock:
            return self._registry.get_sample_value(series, {ENDPOINT_LABEL: label})

    def render(self) -> bytes:
        """Return the registry in the Prometheus text exposition format."""
        with self._lock:
            return generate_latest(self._registry)
