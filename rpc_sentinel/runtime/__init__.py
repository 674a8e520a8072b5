"""Service lifecycle for RPC Sentinel."""

from rpc_sentinel.runtime.models import ServiceState
from rpc_sentinel.runtime.service import SentinelService

__all__ = ["SentinelService", "ServiceState"]
