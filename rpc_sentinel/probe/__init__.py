"""Health-check engine for blockchain RPC endpoints.

Public API
----------
- :class:`HealthChecker` — Per-cycle probe routine and interval scheduler
- :class:`RpcClient` — Probe client capability
- :class:`HttpRpcClient` — Pooled JSON-RPC over HTTP client
- :class:`ScriptedRpcClient` — Deterministic client returning scripted replies
- :class:`ProbeOutcome` — Result of one probe
- :func:`hex_to_int` — Hex quantity decoder
"""

from rpc_sentinel.probe.checker import HealthChecker
from rpc_sentinel.probe.client import HttpRpcClient, RpcClient
from rpc_sentinel.probe.hexutil import hex_to_int, int_to_hex
from rpc_sentinel.probe.models import FailureReason, ProbeOutcome, ProbeState
from rpc_sentinel.probe.stub import ScriptedReply, ScriptedRpcClient

__all__ = [
    "FailureReason",
    "HealthChecker",
    "HttpRpcClient",
    "ProbeOutcome",
    "ProbeState",
    "RpcClient",
    "ScriptedReply",
    "ScriptedRpcClient",
    "hex_to_int",
    "int_to_hex",
]
