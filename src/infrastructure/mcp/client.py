"""
infrastructure.mcp.client - Resolve MCP servers into LangChain tools.

Every configured server gets its own long-lived task that opens the
transport, initializes a ClientSession, publishes the session and its
tool list, then waits for aclose(). The MCP transports are anyio context
managers and must be exited by the task that entered them, hence one task
per server instead of a shared AsyncExitStack.

Tools are exposed as StructuredTool instances named
"<serverId>_<toolName>" whose coroutine forwards to session.call_tool().
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Mapping

from langchain_core.tools import BaseTool, StructuredTool, ToolException

from domain.exceptions import ToolResolutionError
from domain.ports import ToolResolverPort
from infrastructure.mcp.schema import ServerConfig, ToolServerDescriptor

logger = logging.getLogger(__name__)

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def namespaced_tool_name(server_id: str, tool_name: str) -> str:
    """Tool name as seen by the model, unique across servers."""
    return _INVALID_NAME_CHARS.sub("_", f"{server_id}_{tool_name}")


def render_tool_content(content: list[Any]) -> str:
    """Flatten MCP content blocks into the string the model sees."""
    parts = []
    for block in content or []:
        text = getattr(block, "text", None)
        if text is not None:
            parts.append(text)
        elif hasattr(block, "model_dump_json"):
            parts.append(block.model_dump_json())
        else:
            parts.append(str(block))
    return "\n".join(parts)


def wrap_mcp_tool(server_id: str, session: Any, tool: Any) -> StructuredTool:
    """Wrap one MCP tool definition as a LangChain StructuredTool."""
    name = namespaced_tool_name(server_id, tool.name)

    async def _call(**kwargs: Any) -> str:
        result = await session.call_tool(tool.name, arguments=kwargs)
        text = render_tool_content(result.content)
        if getattr(result, "isError", False):
            raise ToolException(text or f"Tool '{name}' failed")
        return text

    return StructuredTool.from_function(
        coroutine=_call,
        name=name,
        description=tool.description or f"{tool.name} (from MCP server {server_id})",
        args_schema=tool.inputSchema or {"type": "object", "properties": {}},
        handle_tool_error=True,
    )


class MCPToolRegistryClient:
    """Connects to every server in a descriptor and collects their tools."""

    def __init__(self, client_id: str = "agenthub-mcp"):
        self.client_id = client_id
        self._closing = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._sessions: dict[str, Any] = {}

    @property
    def connected_servers(self) -> list[str]:
        return list(self._sessions.keys())

    async def resolve_tools(
        self, descriptor: ToolServerDescriptor,
    ) -> dict[str, BaseTool]:
        """Connect to all servers concurrently and return their tools.

        A server that fails to connect or list its tools is logged and
        skipped; the others still contribute.
        """
        if not descriptor.servers:
            return {}

        loop = asyncio.get_running_loop()
        pending: dict[str, asyncio.Future] = {}
        for server_id, config in descriptor.servers.items():
            ready = loop.create_future()
            pending[server_id] = ready
            self._tasks.append(asyncio.create_task(
                self._serve(server_id, config, ready),
                name=f"{self.client_id}:{server_id}",
            ))

        results = await asyncio.gather(*pending.values(), return_exceptions=True)

        tools: dict[str, BaseTool] = {}
        for server_id, result in zip(pending.keys(), results):
            if isinstance(result, BaseException):
                logger.error(
                    "MCP server '%s' unavailable: %s", server_id, result,
                )
                continue
            session, server_tools = result
            self._sessions[server_id] = session
            for tool in server_tools:
                wrapped = wrap_mcp_tool(server_id, session, tool)
                tools[wrapped.name] = wrapped
            logger.info(
                "MCP server '%s' provided %d tool(s)", server_id, len(server_tools),
            )
        return tools

    async def aclose(self) -> None:
        """Close every open session and wait for the server tasks to exit."""
        self._closing.set()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._sessions.clear()
        logger.debug("MCP client '%s' closed", self.client_id)

    async def _serve(
        self, server_id: str, config: ServerConfig, ready: asyncio.Future,
    ) -> None:
        from mcp import ClientSession

        try:
            async with self._open_transport(config) as streams:
                read_stream, write_stream = streams[0], streams[1]
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    listed = await session.list_tools()
                    if not ready.done():
                        ready.set_result((session, list(listed.tools)))
                    await self._closing.wait()
        except Exception as exc:
            if not ready.done():
                ready.set_exception(ToolResolutionError(
                    f"{server_id}: {type(exc).__name__}: {exc}"
                ))
            else:
                logger.exception("MCP server '%s' connection dropped", server_id)

    @staticmethod
    def _open_transport(config: ServerConfig):
        transport = config.resolved_transport
        if transport == "stdio":
            from mcp import StdioServerParameters
            from mcp.client.stdio import stdio_client

            params = StdioServerParameters(
                command=config.command,
                args=config.args,
                env=config.env,
                cwd=config.cwd,
            )
            return stdio_client(params)
        if transport == "sse":
            from mcp.client.sse import sse_client

            return sse_client(config.url, headers=config.headers or None)

        from mcp.client.streamable_http import streamablehttp_client

        return streamablehttp_client(config.url, headers=config.headers or None)


async def initialize_tools(
    descriptor: ToolServerDescriptor,
    resolver: ToolResolverPort,
) -> dict[str, Any]:
    """Resolve tools for all agents. Never raises; failures yield no tools."""
    try:
        logger.info("Initializing MCP tools...")
        if not descriptor.servers:
            logger.warning(
                "No MCP servers configured. Some features may be unavailable."
            )
        tools: Mapping[str, Any] = await resolver.resolve_tools(descriptor)
        logger.info("Initialized %d MCP tool(s)", len(tools))
        return dict(tools)
    except Exception:
        logger.exception("MCP tool initialization failed; continuing without tools")
        return {}
