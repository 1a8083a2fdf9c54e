"""
Tests for loading the MCP servers descriptor.
"""

import logging

import pytest
from pydantic import ValidationError

from domain.exceptions import InvalidToolConfigError, MissingToolConfigError, ToolConfigError
from infrastructure.mcp.config_loader import (
    load_tool_config,
    load_tool_config_strict,
    mcp_server_info,
    resolve_config_path,
)
from infrastructure.mcp.schema import ServerConfig


class TestLoadToolConfig:

    def test_missing_file_yields_no_servers(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            descriptor = load_tool_config(tmp_path / "nope.json")

        assert descriptor.servers == {}
        assert "not found" in caplog.text

    def test_relative_path_resolved_against_base_dir(self, tmp_path, write_json):
        write_json(tmp_path / "mcp-servers.json", {
            "servers": {"fs": {"command": "npx", "args": ["-y", "server-fs"]}},
        })
        descriptor = load_tool_config("mcp-servers.json", base_dir=tmp_path)
        assert descriptor.server_names == ["fs"]
        assert descriptor.servers["fs"].args == ["-y", "server-fs"]

    def test_malformed_json_yields_no_servers(self, tmp_path):
        path = tmp_path / "mcp-servers.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_tool_config(path).servers == {}

    def test_non_object_payload_yields_no_servers(self, tmp_path, write_json):
        path = write_json(tmp_path / "mcp-servers.json", ["fs"])
        assert load_tool_config(path).servers == {}

    def test_missing_servers_key_yields_no_servers(self, tmp_path, write_json):
        path = write_json(tmp_path / "mcp-servers.json", {})
        assert load_tool_config(path).servers == {}

    def test_invalid_entry_dropped_others_kept(self, tmp_path, write_json, caplog):
        path = write_json(tmp_path / "mcp-servers.json", {
            "servers": {
                "good": {"url": "https://tools.example.com/mcp"},
                "broken": {"args": ["no command"]},
            },
        })
        with caplog.at_level(logging.WARNING):
            descriptor = load_tool_config(path)

        assert descriptor.server_names == ["good"]
        assert "broken" in caplog.text

    def test_unknown_keys_kept(self, tmp_path, write_json):
        path = write_json(tmp_path / "mcp-servers.json", {
            "servers": {"fs": {"command": "npx", "disabled": False}},
        })
        server = load_tool_config(path).servers["fs"]
        assert server.model_extra == {"disabled": False}

    def test_unknown_home_directory_yields_no_servers(self, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            descriptor = load_tool_config("~nosuchuser_zz/mcp-servers.json", base_dir=tmp_path)

        assert descriptor.servers == {}
        assert "Invalid MCP server config path" in caplog.text

    def test_overlong_file_name_yields_no_servers(self, tmp_path):
        descriptor = load_tool_config("a" * 300 + ".json", base_dir=tmp_path)
        assert descriptor.servers == {}


class TestLoadToolConfigStrict:

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(MissingToolConfigError) as exc_info:
            load_tool_config_strict(tmp_path / "nope.json")
        assert "nope.json" in str(exc_info.value)

    def test_malformed_json_raises_with_path(self, tmp_path):
        path = tmp_path / "mcp-servers.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(InvalidToolConfigError) as exc_info:
            load_tool_config_strict(path)
        assert exc_info.value.path == path

    def test_invalid_entry_raises(self, tmp_path, write_json):
        path = write_json(tmp_path / "mcp-servers.json", {"servers": {"x": {}}})
        with pytest.raises(InvalidToolConfigError) as exc_info:
            load_tool_config_strict(path)
        assert "servers.x" in str(exc_info.value)

    def test_valid_file(self, tmp_path, write_json):
        path = write_json(tmp_path / "mcp-servers.json", {
            "servers": {"fetch": {"command": "uvx", "args": ["mcp-server-fetch"]}},
        })
        assert load_tool_config_strict(path).server_names == ["fetch"]

    def test_unusable_path_raises(self, tmp_path):
        with pytest.raises(ToolConfigError):
            load_tool_config_strict("a" * 300 + ".json", base_dir=tmp_path)


class TestServerConfig:

    def test_command_means_stdio(self):
        assert ServerConfig(command="npx").resolved_transport == "stdio"

    def test_url_transport_inferred(self):
        assert ServerConfig(url="https://h/mcp").resolved_transport == "streamable_http"
        assert ServerConfig(url="https://h/sse").resolved_transport == "sse"

    def test_explicit_transport_wins(self):
        config = ServerConfig(url="https://h/events", transport="sse")
        assert config.resolved_transport == "sse"

    @pytest.mark.parametrize("payload", [
        {},
        {"command": "npx", "url": "https://h/mcp"},
        {"url": "https://h/mcp", "transport": "stdio"},
        {"command": "npx", "transport": "sse"},
    ])
    def test_invalid_targets(self, payload):
        with pytest.raises(ValidationError):
            ServerConfig.model_validate(payload)


def test_mcp_server_info(tmp_path, write_json):
    path = write_json(tmp_path / "mcp-servers.json", {
        "servers": {"fs": {"command": "npx"}, "web": {"url": "https://h/mcp"}},
    })
    assert mcp_server_info(load_tool_config(path)) == {
        "server_count": 2,
        "server_names": ["fs", "web"],
    }


def test_resolve_config_path_keeps_absolute(tmp_path):
    absolute = tmp_path / "x.json"
    assert resolve_config_path(absolute, base_dir=tmp_path / "other") == absolute
