"""
agent.tools.registry - Local tool registration and invocation.

Keeps the in-process tools (currently the working memory updater) and
converts them to LangChain StructuredTools bound to a SessionContext so
they can sit next to the MCP tools in a turn's tool map.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import StructuredTool

from application.context import SessionContext
from agent.tools.base import LocalTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Local tools by name."""

    def __init__(self, tools: tuple[LocalTool, ...] = ()):
        self._tools: dict[str, LocalTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: LocalTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Local tool '{tool.name}' already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> LocalTool:
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Local tool '{name}' not registered") from None

    def names(self) -> list[str]:
        return list(self._tools)

    async def invoke(self, name: str, ctx: SessionContext, **kwargs: Any) -> str:
        output = await self.get(name).execute(ctx, **kwargs)
        logger.debug("Local tool '%s' done (request %s)", name, ctx.request_id)
        return output

    def to_langchain_tools(self, ctx: SessionContext) -> dict[str, StructuredTool]:
        """StructuredTools bound to *ctx*, keyed by tool name."""

        def bind(name: str):
            async def _call(**kwargs: Any) -> str:
                return await self.invoke(name, ctx, **kwargs)
            return _call

        return {
            name: StructuredTool.from_function(
                coroutine=bind(name),
                name=name,
                description=tool.description,
                args_schema=tool.args_schema,
            )
            for name, tool in self._tools.items()
        }
