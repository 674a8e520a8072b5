"""Shared constants for RPC Sentinel."""

SERVER_NAME = "RPC Sentinel"
SERVER_VERSION = "0.1.0"

# Metrics surface defaults
DEFAULT_METRICS_ADDRESS = ":8080"
METRICS_PATH = "/metrics"
HEALTHZ_PATH = "/healthz"

# Config defaults
DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "RPC_SENTINEL_CONFIG"
DEFAULT_METHOD = "eth_blockNumber"

# Logging defaults
DEFAULT_LOG_LEVEL = "INFO"

# Probe timeouts and connection pool
PROBE_TIMEOUT = 30.0  # seconds, whole call (connect + request + read)
CONNECT_TIMEOUT = 10.0  # seconds, connection establishment
MAX_IDLE_CONNECTIONS = 100  # keep-alive connections kept warm, pool-wide
IDLE_CONNECTION_TIMEOUT = 90.0  # seconds before an idle connection is released

# Prometheus series
RPC_HEALTHY_METRIC = "blockchain_rpc_healthy"
BLOCK_NUMBER_METRIC = "blockchain_block_number"
ENDPOINT_LABEL = "endpoint"
