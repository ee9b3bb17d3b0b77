from __future__ import annotations

import pytest

from domains.edge_hub.api.mcp.server import build_parser, create_edge_hub_config
from pydantic import ValidationError

from domains.mcp_core import MCPConfig, MCPSettings, TransportSettings, reload_settings
from domains.mcp_core.logging import LogConfig, LogFormat


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("MCP_PORT", "MCP_HOST", "MCP_TRANSPORTS", "MCP_ENABLE_PROMPTS", "MCP_SERVER_NAME",
                "MCP_SERVER_PORT", "MCP_LOG_LEVEL", "MCP_LOG_JSON_FORMAT", "MCP_TRANSPORT_ENABLED",
                "MCP_CAPABILITY_PROMPTS", "MCP_SERVER_HOST", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = MCPConfig()
    assert config.port == 8787
    assert config.object_name == "mcp-server"
    assert config.http_enabled and config.websocket_enabled
    assert config.mcp_path == "/mcp"
    assert config.ws_path == "/ws"


def test_unknown_transport_rejected():
    with pytest.raises(ValueError):
        MCPConfig(transports=["carrier-pigeon"])


def test_from_env(monkeypatch):
    monkeypatch.setenv("MCP_PORT", "9001")
    monkeypatch.setenv("MCP_TRANSPORTS", "websocket")
    monkeypatch.setenv("MCP_ENABLE_PROMPTS", "false")
    config = MCPConfig.from_env()
    assert config.port == 9001
    assert config.transports == ["websocket"]
    assert config.enable_prompts is False
    assert config.enable_tools is True


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  port: 9100\n"
        "  name: yaml-server\n"
        "  version: 2.0\n"
        "capabilities:\n"
        "  resources: false\n",
        encoding="utf-8",
    )
    config = MCPConfig.from_yaml(str(path))
    assert config.port == 9100
    assert config.server_name == "yaml-server"
    assert config.server_version == "2.0"
    assert config.enable_resources is False


def test_missing_yaml_falls_back_to_defaults(tmp_path):
    assert MCPConfig.from_yaml(str(tmp_path / "missing.yaml")) == MCPConfig()


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 9100\n  host: 127.0.0.1\n", encoding="utf-8")
    monkeypatch.setenv("MCP_PORT", "9200")
    config = MCPConfig.load(str(path))
    assert config.port == 9200
    assert config.host == "127.0.0.1"


def test_copy_overrides():
    config = MCPConfig()
    other = config.copy(port=1234)
    assert other.port == 1234
    assert config.port == 8787
    other.transports.append("websocket")
    assert config.transports == ["http-streamable", "websocket"]


def test_cli_arguments_override_config():
    args = build_parser().parse_args(["--port", "9300", "--transport", "websocket", "--log-level", "debug"])
    config = create_edge_hub_config(
        yaml_path=args.config_path,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        transports=args.transports,
    )
    assert config.port == 9300
    assert config.transports == ["websocket"]
    assert config.log_level == "DEBUG"


def test_settings_to_config(monkeypatch):
    monkeypatch.setenv("MCP_SERVER_PORT", "9400")
    monkeypatch.setenv("MCP_LOG_LEVEL", "warning")
    monkeypatch.setenv("MCP_TRANSPORT_ENABLED", '["websocket"]')
    monkeypatch.setenv("MCP_CAPABILITY_PROMPTS", "false")
    settings = reload_settings()
    assert isinstance(settings, MCPSettings)
    assert settings.logging.level == "WARNING"

    config = settings.to_config()
    assert config.port == 9400
    assert config.log_level == "WARNING"
    assert config.transports == ["websocket"]
    assert config.enable_prompts is False
    assert config.enable_tools is True


def test_transport_settings_validation():
    with pytest.raises(ValidationError):
        TransportSettings(mcp_path="mcp")
    with pytest.raises(ValidationError):
        TransportSettings(enabled=["smoke-signal"])
    with pytest.raises(ValidationError):
        TransportSettings(enabled=[])


def test_log_config_from_settings(monkeypatch):
    monkeypatch.setenv("MCP_LOG_JSON_FORMAT", "false")
    monkeypatch.setenv("MCP_LOG_LEVEL", "error")
    reload_settings()
    config = LogConfig.from_settings()
    assert config.level == "ERROR"
    assert config.format is LogFormat.CONSOLE


def test_log_config_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "console")
    config = LogConfig.from_env()
    assert config.level == "DEBUG"
    assert config.format is LogFormat.CONSOLE


@pytest.fixture(autouse=True)
def fresh_settings():
    yield
    reload_settings()


def test_config_overrides_only_contain_set_values(monkeypatch):
    assert MCPSettings().config_overrides() == {}

    monkeypatch.setenv("MCP_SERVER_HOST", "127.0.0.1")
    monkeypatch.setenv("MCP_CAPABILITY_PROMPTS", "false")
    assert MCPSettings().config_overrides() == {"host": "127.0.0.1", "enable_prompts": False}


def test_grouped_env_sits_between_yaml_and_cli(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 9100\n  host: 10.0.0.1\n", encoding="utf-8")
    monkeypatch.setenv("MCP_SERVER_PORT", "9500")
    monkeypatch.setenv("MCP_SERVER_HOST", "127.0.0.1")

    config = create_edge_hub_config(yaml_path=str(path))
    assert config.port == 9500
    assert config.host == "127.0.0.1"

    config = create_edge_hub_config(yaml_path=str(path), port=9600)
    assert config.port == 9600
    assert config.host == "127.0.0.1"


def test_log_format_override(monkeypatch):
    assert MCPSettings().logging.format_override() is None

    monkeypatch.setenv("MCP_LOG_JSON_FORMAT", "false")
    assert MCPSettings().logging.format_override() == "console"

    monkeypatch.setenv("MCP_LOG_JSON_FORMAT", "true")
    assert MCPSettings().logging.format_override() == "json"
