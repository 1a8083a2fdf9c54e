"""
agent.tools.base - Contract of the in-process tools an agent carries.

MCP tools arrive as ready-made LangChain tools. Local tools need the
turn's SessionContext (which resource is talking), so they implement
LocalTool and are bound to a context by ToolRegistry.to_langchain_tools().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel

from application.context import SessionContext


class LocalTool(ABC):
    name: ClassVar[str]
    description: ClassVar[str]
    args_schema: ClassVar[type[BaseModel]]

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs: Any) -> str:
        """Run the tool and return the text the model sees."""
