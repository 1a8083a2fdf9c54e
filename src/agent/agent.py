"""
agent.agent - A named agent: chat model + instructions + memory + tools.

The tool map is replaced as a whole (see AgentRegistry.set_tools_to_all);
a generation reads it once at the start of the turn, so a concurrent
replacement never leaves a turn with half of the old and half of the new
tools.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from langchain_core.messages import (
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from application.context import SessionContext
from domain.exceptions import GenerationError
from domain.models import AgentConfig, GenerationResult, ToolCallRecord
from agent.memory import ConversationMemory
from agent.prompt import build_system_prompt
from agent.tools.registry import ToolRegistry
from agent.tools.working_memory import UpdateWorkingMemoryTool

logger = logging.getLogger(__name__)

_TITLE_PROMPT = (
    "Write a short title (at most 8 words) for a conversation that starts "
    "with the following message. Reply with the title only."
)

_EMPTY_TOOLS: Mapping[str, Any] = MappingProxyType({})


def message_text(content: Any) -> str:
    """Plain text of a chat model reply (string or list of content parts)."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class Agent:
    """Runs the LLM + tool-calling loop for one configured agent."""

    def __init__(self, config: AgentConfig, *, max_iterations: int = 5):
        self._config = config
        self._max_iterations = max_iterations
        self._tools: Mapping[str, Any] = _EMPTY_TOOLS

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, tools={len(self._tools)})"

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def model(self) -> Any:
        return self._config.model

    @property
    def instructions(self) -> str:
        return self._config.instructions

    @property
    def memory(self) -> Any:
        return self._config.memory

    @property
    def tools(self) -> Mapping[str, Any]:
        """Read-only snapshot of the external (MCP) tools."""
        return self._tools

    @tools.setter
    def tools(self, tools: Mapping[str, Any]) -> None:
        if not isinstance(tools, MappingProxyType):
            tools = MappingProxyType(dict(tools))
        self._tools = tools

    async def generate(
        self, prompt: str, ctx: Optional[SessionContext] = None,
    ) -> GenerationResult:
        """Answer *prompt*, using thread memory when *ctx* is given.

        Raises:
            GenerationError: If the model keeps calling tools past max_iterations.
        """
        external_tools = self._tools

        conversation: Optional[ConversationMemory] = None
        if ctx is not None and self.memory is not None:
            conversation = ConversationMemory(self.memory, ctx)
            await conversation.load(prompt)

        tools = dict(external_tools)
        if conversation is not None and conversation.working_memory_enabled:
            local = ToolRegistry((UpdateWorkingMemoryTool(self.memory),))
            tools.update(local.to_langchain_tools(ctx))

        system_prompt = build_system_prompt(
            self.instructions,
            working_memory=conversation.working_memory if conversation else None,
            tool_names=tools.keys(),
        )
        messages: list[BaseMessage] = [
            SystemMessage(content=system_prompt),
            *(conversation.messages if conversation else []),
            HumanMessage(content=prompt),
        ]

        logger.info(
            "Agent '%s' generating (tools=%d, history=%d): %s",
            self.name, len(tools), len(messages) - 2, prompt[:80],
        )
        text, calls = await self._run_tool_loop(messages, tools)

        if conversation is not None:
            await conversation.save_turn(prompt, text, self._generate_title)

        logger.debug("Agent '%s' response: %s", self.name, text[:100])
        return GenerationResult(text=text, tool_calls=tuple(calls))

    async def _run_tool_loop(
        self, messages: list[BaseMessage], tools: Mapping[str, Any],
    ) -> tuple[str, list[ToolCallRecord]]:
        model = self.model.bind_tools(list(tools.values())) if tools else self.model
        calls: list[ToolCallRecord] = []

        for _ in range(self._max_iterations):
            response = await model.ainvoke(messages)
            messages.append(response)

            tool_calls = getattr(response, "tool_calls", None) or []
            if not tool_calls:
                return message_text(response.content), calls

            for call in tool_calls:
                record = await self._execute_tool_call(call, tools)
                calls.append(record)
                messages.append(ToolMessage(
                    content=record.output,
                    tool_call_id=call.get("id") or "",
                    name=record.name,
                ))

        logger.warning(
            "Agent '%s' stopped after %d iteration(s) without a final answer",
            self.name, self._max_iterations,
        )
        raise GenerationError(
            f"Agent stopped after {self._max_iterations} tool iteration(s) "
            "without a final answer"
        )

    async def _execute_tool_call(
        self, call: Mapping[str, Any], tools: Mapping[str, Any],
    ) -> ToolCallRecord:
        name = call.get("name", "")
        args = dict(call.get("args") or {})
        tool = tools.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool '%s'", name)
            return ToolCallRecord(name=name, args=args, output=f"Unknown tool: {name}", error=True)

        try:
            output = await tool.ainvoke(args)
        except Exception as exc:
            logger.exception("Tool '%s' failed", name)
            return ToolCallRecord(name=name, args=args, output=f"Tool error: {exc}", error=True)

        logger.info("Tool '%s' executed", name)
        text = output if isinstance(output, str) else message_text(getattr(output, "content", str(output)))
        return ToolCallRecord(name=name, args=args, output=text)

    async def _generate_title(self, first_message: str) -> str:
        response = await self.model.ainvoke([
            SystemMessage(content=_TITLE_PROMPT),
            HumanMessage(content=first_message),
        ])
        return message_text(response.content)
