"""Pydantic configuration models for RPC Sentinel.

Example::

    endpoints:
      - name: mainnet
        url: https://eth.example.com
    interval: 5              # minutes between check cycles
    method: eth_blockNumber
    prometheus:
      address: ":8080"
"""

from __future__ import annotations

from typing import List, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpc_sentinel.constants import (
    CONNECT_TIMEOUT,
    DEFAULT_METHOD,
    DEFAULT_METRICS_ADDRESS,
    IDLE_CONNECTION_TIMEOUT,
    MAX_IDLE_CONNECTIONS,
    PROBE_TIMEOUT,
)


class EndpointConfig(BaseModel):
    """One RPC endpoint. ``name`` becomes the ``endpoint`` metric label."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique endpoint name (metric label).")
    url: str = Field(..., min_length=1, description="JSON-RPC HTTP(S) URL.")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Endpoint name must be a non-empty string")
        if stripped != v:
            raise ValueError(f"Endpoint name '{v}' has leading/trailing whitespace")
        return v

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL '{v}' must start with http:// or https://")
        try:
            parsed = httpx.URL(v)
        except httpx.InvalidURL as exc:
            raise ValueError(f"URL '{v}' is not a valid URL: {exc}") from None
        if not parsed.host:
            raise ValueError(f"URL '{v}' has no host")
        return v


class PrometheusSettings(BaseModel):
    """Metrics surface settings."""

    address: str = Field(
        default=DEFAULT_METRICS_ADDRESS,
        description="Bind address for /metrics, e.g. ':8080' or '127.0.0.1:9100'.",
    )

    @field_validator("address")
    @classmethod
    def _validate_address(cls, v: str) -> str:
        parse_bind_address(v)
        return v.strip()


class ProbeSettings(BaseModel):
    """Probe deadlines and connection pool tuning."""

    timeout: float = Field(
        default=PROBE_TIMEOUT,
        gt=0,
        description="Deadline in seconds for one probe (connect + call).",
    )
    connect_timeout: float = Field(
        default=CONNECT_TIMEOUT,
        gt=0,
        description="Connection establishment sub-deadline in seconds.",
    )
    max_idle_connections: int = Field(
        default=MAX_IDLE_CONNECTIONS,
        ge=0,
        description=(
            "Keep-alive connections kept warm across the whole pool "
            "(httpx has no per-host idle limit)."
        ),
    )
    idle_timeout: float = Field(
        default=IDLE_CONNECTION_TIMEOUT,
        ge=0,
        description="Seconds before an idle pooled connection is released.",
    )
    concurrent: bool = Field(
        default=True,
        description="Probe endpoints in parallel within a cycle.",
    )


class SentinelConfig(BaseModel):
    """Top-level validated configuration for RPC Sentinel."""

    endpoints: List[EndpointConfig] = Field(..., min_length=1)
    interval: int = Field(..., ge=1, description="Minutes between check cycles.")
    method: str = Field(default=DEFAULT_METHOD, description="JSON-RPC method to call.")
    prometheus: PrometheusSettings = Field(default_factory=PrometheusSettings)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)

    @field_validator("method")
    @classmethod
    def _validate_method(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("RPC method name must be a non-empty string")
        return v

    @field_validator("endpoints")
    @classmethod
    def _validate_unique_names(cls, v: List[EndpointConfig]) -> List[EndpointConfig]:
        seen: set[str] = set()
        for ep in v:
            if ep.name in seen:
                raise ValueError(f"Duplicate endpoint name '{ep.name}'")
            seen.add(ep.name)
        return v

    @property
    def interval_seconds(self) -> float:
        return float(self.interval * 60)


def parse_bind_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host binds all interfaces.

    ``":8080"`` → ``("0.0.0.0", 8080)``, ``"[::1]:9100"`` → ``("::1", 9100)``.
    """
    address = address.strip()
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ValueError(f"Address '{address}' must be in host:port form")
    host = host.strip("[]") or "0.0.0.0"
    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"Address '{address}' has a non-numeric port") from None
    if not 1 <= port <= 65535:
        raise ValueError(f"Address '{address}' port must be within 1-65535")
    return host, port
