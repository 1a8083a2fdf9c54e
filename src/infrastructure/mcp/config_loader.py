"""
infrastructure.mcp.config_loader - Load the MCP servers descriptor.

Two entry points:
    load_tool_config()         bootstrap path, never raises. Any fault is
                               logged and degrades to "no servers".
    load_tool_config_strict()  raises ToolConfigError with the path and a
                               readable detail (used by `agenthub tools-check`).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from domain.exceptions import InvalidToolConfigError, MissingToolConfigError
from infrastructure.mcp.schema import ServerConfig, ToolServerDescriptor

logger = logging.getLogger(__name__)


def resolve_config_path(path: str | Path, base_dir: Optional[Path] = None) -> Path:
    """Resolve *path* against *base_dir* (default: current directory)."""
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return (base_dir or Path.cwd()) / candidate


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(item) for item in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def load_tool_config(
    path: str | Path, base_dir: Optional[Path] = None,
) -> ToolServerDescriptor:
    """Load the descriptor, returning an empty one on any failure.

    Invalid server entries are dropped one by one so that a single typo
    does not disable every other server.
    """
    try:
        resolved = resolve_config_path(path, base_dir)
        logger.info("Loading MCP server config: %s", resolved)
        found = resolved.exists()
    except (OSError, RuntimeError):
        logger.exception("Invalid MCP server config path: %s", path)
        return ToolServerDescriptor()

    if not found:
        logger.error("MCP server config not found: %s", resolved)
        return ToolServerDescriptor()

    try:
        payload: Any = json.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.exception("Failed to read MCP server config: %s", resolved)
        return ToolServerDescriptor()

    if not isinstance(payload, dict):
        logger.error("MCP server config must be a JSON object: %s", resolved)
        return ToolServerDescriptor()

    raw_servers = payload.get("servers") or {}
    if not isinstance(raw_servers, dict):
        logger.error("'servers' must be an object in %s", resolved)
        return ToolServerDescriptor()

    servers: dict[str, ServerConfig] = {}
    for server_id, params in raw_servers.items():
        try:
            servers[server_id] = ServerConfig.model_validate(params)
        except ValidationError as exc:
            logger.warning(
                "Skipping invalid MCP server '%s': %s",
                server_id, _describe_validation_error(exc),
            )

    logger.info("Loaded MCP server config: %d server(s)", len(servers))
    return ToolServerDescriptor(servers=servers)


def load_tool_config_strict(
    path: str | Path, base_dir: Optional[Path] = None,
) -> ToolServerDescriptor:
    """Load and validate the descriptor, raising ToolConfigError on failure."""
    try:
        resolved = resolve_config_path(path, base_dir)
        found = resolved.exists()
    except (OSError, RuntimeError) as exc:
        raise InvalidToolConfigError(Path(path), str(exc)) from exc
    if not found:
        raise MissingToolConfigError(resolved)

    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidToolConfigError(resolved, f"line {exc.lineno}: {exc.msg}") from exc
    except (OSError, ValueError) as exc:
        raise InvalidToolConfigError(resolved, str(exc)) from exc

    try:
        return ToolServerDescriptor.model_validate(payload)
    except ValidationError as exc:
        raise InvalidToolConfigError(resolved, _describe_validation_error(exc)) from exc


def mcp_server_info(descriptor: ToolServerDescriptor) -> dict[str, Any]:
    """Summary of the configured servers for diagnostics."""
    return {
        "server_count": len(descriptor.servers),
        "server_names": descriptor.server_names,
    }
