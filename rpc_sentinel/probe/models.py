"""Probe outcome types produced once per endpoint per cycle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProbeState(Enum):
    """Per-endpoint state within a single cycle."""

    IDLE = "idle"
    PROBING = "probing"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class FailureReason(Enum):
    """Why a probe was classified unhealthy."""

    CONNECT = "connect"
    CALL = "call"
    DECODE = "decode"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe. Never carried over to the next cycle."""

    endpoint: str
    state: ProbeState
    block_height: Optional[int] = None
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    latency_ms: float = 0.0

    @classmethod
    def healthy(cls, endpoint: str, block_height: int, latency_ms: float = 0.0) -> "ProbeOutcome":
        return cls(
            endpoint=endpoint,
            state=ProbeState.HEALTHY,
            block_height=block_height,
            latency_ms=latency_ms,
        )

    @classmethod
    def unhealthy(
        cls,
        endpoint: str,
        reason: FailureReason,
        error: str,
        latency_ms: float = 0.0,
    ) -> "ProbeOutcome":
        return cls(
            endpoint=endpoint,
            state=ProbeState.UNHEALTHY,
            reason=reason,
            error=error,
            latency_ms=latency_ms,
        )

    @property
    def is_healthy(self) -> bool:
        return self.state is ProbeState.HEALTHY
