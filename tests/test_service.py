"""Tests for the SentinelService lifecycle."""

import asyncio

import pytest

from rpc_sentinel.config.schema import SentinelConfig
from rpc_sentinel.probe.stub import ScriptedRpcClient
from rpc_sentinel.runtime.models import ServiceState, is_valid_transition
from rpc_sentinel.runtime.service import SentinelService
from rpc_sentinel.telemetry.sink import MetricsSink


def _config(**overrides) -> SentinelConfig:
    data = {
        "endpoints": [
            {"name": "a", "url": "http://a.test"},
            {"name": "b", "url": "http://b.test"},
        ],
        "interval": 1,
        "probe": {"timeout": 1.0},
    }
    data.update(overrides)
    return SentinelConfig.model_validate(data)


class TestServiceState:
    def test_valid_transitions(self) -> None:
        assert is_valid_transition(ServiceState.PENDING, ServiceState.RUNNING)
        assert is_valid_transition(ServiceState.PENDING, ServiceState.STOPPED)
        assert is_valid_transition(ServiceState.RUNNING, ServiceState.STOPPING)
        assert is_valid_transition(ServiceState.STOPPING, ServiceState.STOPPED)

    def test_invalid_transitions(self) -> None:
        assert not is_valid_transition(ServiceState.STOPPED, ServiceState.RUNNING)
        assert not is_valid_transition(ServiceState.RUNNING, ServiceState.PENDING)


class TestSentinelService:
    def test_run_once_updates_shared_sink(self) -> None:
        stub = ScriptedRpcClient().script("http://a.test", "0x10").script("http://b.test", "0xzz")
        sink = MetricsSink()
        service = SentinelService(_config(), sink=sink, client=stub)

        outcomes = asyncio.run(service.run_once())

        assert [o.is_healthy for o in outcomes] == [True, False]
        assert sink.get_gauge("blockchain_rpc_healthy", "a") == 1.0
        assert sink.get_gauge("blockchain_block_number", "a") == 16.0
        assert sink.get_gauge("blockchain_rpc_healthy", "b") == 0.0
        assert sink.get_gauge("blockchain_block_number", "b") is None

    def test_checker_uses_config(self) -> None:
        service = SentinelService(_config(interval=5, method="eth_chainId"), client=ScriptedRpcClient())
        assert service.checker._interval == 300.0
        assert service.checker._method == "eth_chainId"
        assert [ep.name for ep in service.checker.endpoints] == ["a", "b"]

    def test_start_stop(self) -> None:
        stub = ScriptedRpcClient()
        service = SentinelService(_config(), client=stub)

        async def _scenario() -> None:
            await service.start()
            assert service.state is ServiceState.RUNNING
            assert service.checker.running
            await service.stop()
            assert not service.checker.running

        asyncio.run(_scenario())
        assert service.state is ServiceState.STOPPED
        assert stub.closed is True

    def test_stop_is_idempotent(self) -> None:
        stub = ScriptedRpcClient()
        service = SentinelService(_config(), client=stub)

        async def _scenario() -> None:
            await service.start()
            await service.stop()
            await service.stop()

        asyncio.run(_scenario())
        assert service.state is ServiceState.STOPPED

    def test_stop_before_start_closes_client(self) -> None:
        stub = ScriptedRpcClient()
        service = SentinelService(_config(), client=stub)
        asyncio.run(service.stop())
        assert service.state is ServiceState.STOPPED
        assert stub.closed is True

    def test_cannot_restart_after_stop(self) -> None:
        service = SentinelService(_config(), client=ScriptedRpcClient())
        asyncio.run(service.stop())
        with pytest.raises(Exception, match="Invalid state transition"):
            asyncio.run(service.start())

    def test_default_client_is_http(self) -> None:
        from rpc_sentinel.probe.client import HttpRpcClient

        service = SentinelService(_config())
        try:
            assert isinstance(service._client, HttpRpcClient)
        finally:
            asyncio.run(service.stop())
