"""
infrastructure.mcp.schema - Validated shape of the MCP servers descriptor.

    {"servers": {"<serverId>": {"command": "npx", "args": [...]},
                 "<serverId>": {"url": "https://host/mcp"}}}

Each entry is either a local stdio server (command/args/env/cwd) or a
remote one (url/headers). Unknown keys are kept so that descriptors
written for other MCP hosts still load.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Transport = Literal["stdio", "streamable_http", "sse"]


class ServerConfig(BaseModel):
    """Connection parameters of one MCP server."""

    model_config = ConfigDict(extra="allow")

    command: Optional[str] = None
    args: list[str] = Field(default_factory=list)
    env: Optional[dict[str, str]] = None
    cwd: Optional[str] = None

    url: Optional[str] = None
    headers: dict[str, str] = Field(default_factory=dict)

    transport: Optional[Transport] = None

    @model_validator(mode="after")
    def _check_target(self) -> ServerConfig:
        if self.command is None and self.url is None:
            raise ValueError("Must provide either command or url")
        if self.command is not None and self.url is not None:
            raise ValueError("Provide only one of command or url")
        if self.transport == "stdio" and self.command is None:
            raise ValueError("stdio transport requires a command")
        if self.transport in ("streamable_http", "sse") and self.url is None:
            raise ValueError(f"{self.transport} transport requires a url")
        return self

    @property
    def resolved_transport(self) -> Transport:
        if self.transport is not None:
            return self.transport
        if self.command is not None:
            return "stdio"
        if self.url and self.url.rstrip("/").endswith("/sse"):
            return "sse"
        return "streamable_http"


class ToolServerDescriptor(BaseModel):
    """All configured MCP servers, keyed by server id."""

    model_config = ConfigDict(extra="allow")

    servers: dict[str, ServerConfig] = Field(default_factory=dict)

    @property
    def server_names(self) -> list[str]:
        return list(self.servers.keys())
