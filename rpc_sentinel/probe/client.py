"""JSON-RPC probe clients.

:class:`RpcClient` is the capability the health checker depends on.
:class:`HttpRpcClient` is the network implementation: one pooled
``httpx.AsyncClient`` shared by every probe, one JSON-RPC 2.0 POST per call.
A scripted stand-in for tests lives in :mod:`rpc_sentinel.probe.stub`.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ValidationError

from rpc_sentinel.constants import (
    CONNECT_TIMEOUT,
    IDLE_CONNECTION_TIMEOUT,
    MAX_IDLE_CONNECTIONS,
    PROBE_TIMEOUT,
    SERVER_NAME,
    SERVER_VERSION,
)
from rpc_sentinel.errors import CallError, ConnectError

logger = logging.getLogger(__name__)

# Failures that happen before a connection exists, including unparseable URLs.
_CONNECT_FAILURES = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ProxyError,
    httpx.UnsupportedProtocol,
    httpx.InvalidURL,
)


@runtime_checkable
class RpcClient(Protocol):
    """Performs exactly one remote call per invocation."""

    async def call(self, url: str, method: str, *, deadline: float) -> str:
        """Call *method* without params on *url* and return the raw string result.

        Raises :class:`~rpc_sentinel.errors.ConnectError` or
        :class:`~rpc_sentinel.errors.CallError`.
        """
        ...

    async def aclose(self) -> None:
        """Release every pooled resource."""
        ...


# ── Wire models ──────────────────────────────────────────────────────────


class JsonRpcErrorObject(BaseModel):
    """The ``error`` member of a JSON-RPC 2.0 response."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response envelope."""

    jsonrpc: str = "2.0"
    id: Any = None
    result: Any = None
    error: Optional[JsonRpcErrorObject] = None


# ── Network client ───────────────────────────────────────────────────────


class HttpRpcClient:
    """JSON-RPC over HTTP(S) with a shared keep-alive connection pool.

    Parameters
    ----------
    timeout:
        Per-request httpx timeout in seconds. The caller's ``deadline``
        bounds the whole call on top of this.
    connect_timeout:
        Sub-deadline for establishing a connection (TCP + TLS).
    max_idle_connections:
        Keep-alive connections kept warm in the pool.
    idle_timeout:
        Seconds an idle pooled connection survives before being released.
    transport:
        Optional httpx transport (tests pass an ``httpx.MockTransport``).
    """

    def __init__(
        self,
        *,
        timeout: float = PROBE_TIMEOUT,
        connect_timeout: float = CONNECT_TIMEOUT,
        max_idle_connections: int = MAX_IDLE_CONNECTIONS,
        idle_timeout: float = IDLE_CONNECTION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            limits=httpx.Limits(
                max_keepalive_connections=max_idle_connections,
                keepalive_expiry=idle_timeout,
            ),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": f"rpc-sentinel/{SERVER_VERSION}",
            },
            transport=transport,
        )
        self._ids = itertools.count(1)
        logger.debug(
            "%s RPC client created (timeout=%.0fs, connect=%.0fs, idle_pool=%d, idle_timeout=%.0fs)",
            SERVER_NAME,
            timeout,
            connect_timeout,
            max_idle_connections,
            idle_timeout,
        )

    # ── Lifecycle ────────────────────────────────────────────────────

    async def __aenter__(self) -> "HttpRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool."""
        if not self._client.is_closed:
            await self._client.aclose()
            logger.debug("RPC client connection pool closed.")

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    # ── Public API ───────────────────────────────────────────────────

    async def call(self, url: str, method: str, *, deadline: float = PROBE_TIMEOUT) -> str:
        """Issue one JSON-RPC call bounded by *deadline* seconds.

        Connection setup, request and response read share the one budget;
        running past it raises :class:`CallError`.
        """
        try:
            return await asyncio.wait_for(self._call(url, method), timeout=deadline)
        except asyncio.TimeoutError as exc:
            raise CallError(
                f"Calling {method} exceeded the {deadline:g}s deadline",
                url=url,
                orig_exc=exc,
            ) from exc

    # ── Internal ─────────────────────────────────────────────────────

    async def _call(self, url: str, method: str) -> str:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": [],
        }
        try:
            # post() reads the body and returns the connection to the pool.
            resp = await self._client.post(url, json=payload)
        except _CONNECT_FAILURES as exc:
            raise ConnectError(f"Could not connect to {url}", url=url, orig_exc=exc) from exc
        except httpx.HTTPError as exc:
            raise CallError(f"Request for {method} failed", url=url, orig_exc=exc) from exc

        if not resp.is_success:
            raise CallError(f"HTTP {resp.status_code} calling {method}", url=url)

        return self._parse_result(url, method, resp)

    @staticmethod
    def _parse_result(url: str, method: str, resp: httpx.Response) -> str:
        try:
            envelope = JsonRpcResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise CallError(f"Malformed JSON-RPC response to {method}", url=url, orig_exc=exc) from exc

        if envelope.error is not None:
            raise CallError(
                f"RPC error {envelope.error.code} calling {method}: {envelope.error.message}",
                url=url,
            )
        if envelope.result is None:
            # A null result decodes as an empty quantity downstream.
            return ""
        if not isinstance(envelope.result, str):
            raise CallError(
                f"Expected a string result from {method}, got {type(envelope.result).__name__}",
                url=url,
            )
        return envelope.result
