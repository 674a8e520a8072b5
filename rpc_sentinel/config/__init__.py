"""Configuration loading and validation for RPC Sentinel."""

from rpc_sentinel.config.loader import load_config, resolve_config_path, validate_config
from rpc_sentinel.config.migration import expand_env_vars
from rpc_sentinel.config.schema import (
    EndpointConfig,
    ProbeSettings,
    PrometheusSettings,
    SentinelConfig,
    parse_bind_address,
)

__all__ = [
    "EndpointConfig",
    "ProbeSettings",
    "PrometheusSettings",
    "SentinelConfig",
    "expand_env_vars",
    "load_config",
    "parse_bind_address",
    "resolve_config_path",
    "validate_config",
]
