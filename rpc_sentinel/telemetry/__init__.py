"""Metrics state exposed to Prometheus."""

from rpc_sentinel.telemetry.sink import MetricsSink

__all__ = ["MetricsSink"]
