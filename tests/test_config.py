"""Tests for config schema, env expansion and the YAML loader."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from rpc_sentinel.config.loader import load_config, resolve_config_path, validate_config
from rpc_sentinel.config.migration import expand_env_vars
from rpc_sentinel.config.schema import (
    EndpointConfig,
    ProbeSettings,
    SentinelConfig,
    parse_bind_address,
)
from rpc_sentinel.constants import CONFIG_ENV_VAR
from rpc_sentinel.display.logging_config import secret_redaction_filter
from rpc_sentinel.errors import ConfigurationError

VALID_YAML = """\
endpoints:
  - name: endpoint1
    url: http://example1.com
  - name: endpoint2
    url: https://example2.com
interval: 5
method: eth_blockNumber
prometheus:
  address: ":8080"
"""


def _write(tmp_path: Path, content: str, name: str = "config.yaml") -> str:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def _raw(**overrides):
    data = {
        "endpoints": [{"name": "a", "url": "http://a.test"}],
        "interval": 1,
        "method": "eth_blockNumber",
    }
    data.update(overrides)
    return data


class TestSentinelConfig:
    def test_defaults(self) -> None:
        cfg = SentinelConfig.model_validate(
            {"endpoints": [{"name": "a", "url": "http://a.test"}], "interval": 2}
        )
        assert cfg.method == "eth_blockNumber"
        assert cfg.prometheus.address == ":8080"
        assert cfg.probe.timeout == 30.0
        assert cfg.probe.connect_timeout == 10.0
        assert cfg.probe.max_idle_connections == 100
        assert cfg.probe.idle_timeout == 90.0
        assert cfg.probe.concurrent is True
        assert cfg.interval_seconds == 120.0

    def test_idle_pool_limit_documented_as_pool_wide(self) -> None:
        description = ProbeSettings.model_json_schema()["properties"]["max_idle_connections"]["description"]
        assert "whole pool" in description

    def test_endpoint_is_immutable(self) -> None:
        ep = EndpointConfig(name="a", url="http://a.test")
        with pytest.raises(ValidationError):
            ep.name = "b"  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"interval": 0},
            {"interval": -1},
            {"endpoints": []},
            {"method": ""},
            {"method": "   "},
            {"endpoints": [{"name": "a", "url": "ftp://a.test"}]},
            {"endpoints": [{"name": "a", "url": "http://node.test:notaport/rpc"}]},
            {"endpoints": [{"name": "a", "url": "http://"}]},
            {"endpoints": [{"name": " a", "url": "http://a.test"}]},
            {"endpoints": [{"name": "", "url": "http://a.test"}]},
            {
                "endpoints": [
                    {"name": "a", "url": "http://a.test"},
                    {"name": "a", "url": "http://b.test"},
                ]
            },
            {"prometheus": {"address": "8080"}},
            {"prometheus": {"address": ":notaport"}},
            {"probe": {"timeout": 0}},
        ],
    )
    def test_rejects_invalid(self, overrides) -> None:
        with pytest.raises(ConfigurationError):
            validate_config(_raw(**overrides))

    def test_missing_interval(self) -> None:
        data = _raw()
        del data["interval"]
        with pytest.raises(ConfigurationError, match="interval"):
            validate_config(data)

    def test_all_errors_reported(self) -> None:
        with pytest.raises(ConfigurationError, match=r"\(2 error\(s\)\)"):
            validate_config({"endpoints": [], "interval": 0})


class TestParseBindAddress:
    def test_port_only(self) -> None:
        assert parse_bind_address(":8080") == ("0.0.0.0", 8080)

    def test_host_and_port(self) -> None:
        assert parse_bind_address("127.0.0.1:9100") == ("127.0.0.1", 9100)

    def test_ipv6(self) -> None:
        assert parse_bind_address("[::1]:9100") == ("::1", 9100)

    @pytest.mark.parametrize("address", ["8080", ":0", ":70000", "host:"])
    def test_invalid(self, address: str) -> None:
        with pytest.raises(ValueError):
            parse_bind_address(address)


class TestExpandEnvVars:
    def test_expands_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RPC_KEY", "abc123")
        data = {"endpoints": [{"url": "https://x.test/${RPC_KEY}"}], "interval": 5}
        assert expand_env_vars(data) == {
            "endpoints": [{"url": "https://x.test/abc123"}],
            "interval": 5,
        }

    def test_unset_left_unchanged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RPC_SENTINEL_UNSET_VAR", raising=False)
        assert expand_env_vars("${RPC_SENTINEL_UNSET_VAR}") == "${RPC_SENTINEL_UNSET_VAR}"

    def test_on_expand_callback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RPC_KEY", "abc123")
        seen = []
        expand_env_vars(["${RPC_KEY}", "plain"], on_expand=seen.append)
        assert seen == ["abc123"]


class TestLoadConfig:
    def test_load_valid(self, tmp_path: Path) -> None:
        cfg = load_config(_write(tmp_path, VALID_YAML))
        assert [ep.name for ep in cfg.endpoints] == ["endpoint1", "endpoint2"]
        assert cfg.endpoints[1].url == "https://example2.com"
        assert cfg.interval == 5

    def test_env_secret_is_registered_for_redaction(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RPC_SENTINEL_TEST_KEY", "s3cr3t-project-id")
        path = _write(
            tmp_path,
            "endpoints:\n"
            "  - name: infura\n"
            "    url: https://mainnet.infura.io/v3/${RPC_SENTINEL_TEST_KEY}\n"
            "interval: 1\n",
        )
        cfg = load_config(path)
        assert cfg.endpoints[0].url.endswith("s3cr3t-project-id")
        assert "s3cr3t-project-id" not in secret_redaction_filter.redact(cfg.endpoints[0].url)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_wrong_extension(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported"):
            load_config(_write(tmp_path, VALID_YAML, name="config.json"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Error reading"):
            load_config(_write(tmp_path, "endpoints: [\n"))


class TestResolveConfigPath:
    def test_explicit_path_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, "/env/config.yaml")
        assert resolve_config_path("my.yaml") == os.path.abspath("my.yaml")

    def test_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, "/env/config.yaml")
        assert resolve_config_path(None) == "/env/config.yaml"

    def test_autodetect_yml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yml").write_text(VALID_YAML, encoding="utf-8")
        assert resolve_config_path(None) == os.path.join(os.getcwd(), "config.yml")

    def test_default_when_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert resolve_config_path(None) == os.path.join(os.getcwd(), "config.yaml")
