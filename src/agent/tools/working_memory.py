"""
agent.tools.working_memory - Let the model rewrite the user's working memory.

The model always sends the whole document; the previous content is
replaced (last write wins).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from application.context import SessionContext
from agent.prompt import WORKING_MEMORY_TOOL
from agent.tools.base import LocalTool

if TYPE_CHECKING:
    from application.services.memory import MemoryService


class UpdateWorkingMemoryInput(BaseModel):
    """Input schema for the update_working_memory tool."""

    memory: str = Field(
        description="The complete updated working memory document in markdown."
    )


class UpdateWorkingMemoryTool(LocalTool):
    """Persist the working memory document of the current resource."""

    name = WORKING_MEMORY_TOOL
    description = (
        "Save what you know about the user (name, preferences, interests). "
        "Pass the complete updated document, not just the changes."
    )
    args_schema = UpdateWorkingMemoryInput

    def __init__(self, memory: MemoryService):
        self._memory = memory

    async def execute(self, ctx: SessionContext, memory: str = "", **kwargs) -> str:
        await self._memory.update_working_memory(ctx.resource_id, memory)
        return "Working memory updated."
