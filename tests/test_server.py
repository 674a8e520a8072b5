"""Tests for the Starlette metrics app."""

from starlette.testclient import TestClient

from rpc_sentinel.config.schema import SentinelConfig
from rpc_sentinel.constants import SERVER_NAME, SERVER_VERSION
from rpc_sentinel.probe.stub import ScriptedRpcClient
from rpc_sentinel.runtime.models import ServiceState
from rpc_sentinel.runtime.service import SentinelService
from rpc_sentinel.server.app import create_app


def _service(stub: ScriptedRpcClient) -> SentinelService:
    config = SentinelConfig.model_validate(
        {
            "endpoints": [
                {"name": "a", "url": "http://a.test"},
                {"name": "b", "url": "http://b.test"},
            ],
            "interval": 5,
        }
    )
    return SentinelService(config, client=stub)


class TestMetricsApp:
    def test_metrics_exposition(self) -> None:
        service = _service(ScriptedRpcClient())
        service.sink.record_healthy("a", 436)
        service.sink.record_unhealthy("b")

        with TestClient(create_app(service)) as client:
            resp = client.get("/metrics")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        body = resp.text
        assert 'blockchain_rpc_healthy{endpoint="a"} 1.0' in body
        assert 'blockchain_block_number{endpoint="a"} 436.0' in body
        assert 'blockchain_rpc_healthy{endpoint="b"} 0.0' in body
        assert 'blockchain_block_number{endpoint="b"}' not in body

    def test_empty_metrics_before_first_cycle(self) -> None:
        service = _service(ScriptedRpcClient())
        with TestClient(create_app(service)) as client:
            body = client.get("/metrics").text
        assert "# TYPE blockchain_rpc_healthy gauge" in body
        assert 'endpoint="a"' not in body

    def test_healthz(self) -> None:
        service = _service(ScriptedRpcClient())
        with TestClient(create_app(service)) as client:
            data = client.get("/healthz").json()
        assert data == {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "state": "running",
            "endpoints": 2,
            "cycles_completed": 0,
        }

    def test_lifespan_starts_and_stops_service(self) -> None:
        stub = ScriptedRpcClient()
        service = _service(stub)
        with TestClient(create_app(service)):
            assert service.state is ServiceState.RUNNING
        assert service.state is ServiceState.STOPPED
        assert stub.closed is True

    def test_unknown_path(self) -> None:
        service = _service(ScriptedRpcClient())
        with TestClient(create_app(service)) as client:
            assert client.get("/nope").status_code == 404
