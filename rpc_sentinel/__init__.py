"""
RPC Sentinel - health and chain-height exporter for blockchain JSON-RPC endpoints.

RPC Sentinel periodically calls a JSON-RPC method (``eth_blockNumber`` by
default) on every configured endpoint and exposes liveness and block height
as Prometheus gauges on a ``/metrics`` endpoint.
"""

from rpc_sentinel.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
