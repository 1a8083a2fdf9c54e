"""
Tests for DispatchService: routing by whitespace-free agent name and
error-to-string conversion.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from agent.registry import AgentRegistry
from application.services.dispatch import DispatchService


@pytest.fixture
def dispatch(make_config) -> DispatchService:
    return DispatchService(AgentRegistry([
        make_config("Gemini Flash Experimental"),
        make_config("Second Agent"),
    ]))


class TestDispatchService:

    @pytest.mark.asyncio
    async def test_default_agent_echoes(self, dispatch):
        assert await dispatch.process("ping") == "ping"

    @pytest.mark.asyncio
    async def test_unknown_agent_reports_name(self, dispatch):
        reply = await dispatch.process("hello", "NoSuchAgent")
        assert "NoSuchAgent" in reply
        assert reply == 'Agent "NoSuchAgent" not found'

    @pytest.mark.asyncio
    async def test_agent_name_whitespace_ignored(self, dispatch):
        assert await dispatch.process("hi", "Second Agent") == "hi"
        assert await dispatch.process("hi", "SecondAgent") == "hi"
        assert await dispatch.process("hi", "  Second\tAgent ") == "hi"

    @pytest.mark.asyncio
    async def test_blank_agent_name_uses_default(self, make_config):
        first_model = MagicMock()
        first_model.ainvoke = AsyncMock(return_value=MagicMock(content="from first", tool_calls=[]))
        registry = AgentRegistry([make_config("First", model=first_model), make_config("Other")])

        assert await DispatchService(registry).process("x", "   ") == "from first"

    @pytest.mark.asyncio
    async def test_generation_failure_becomes_message(self, make_config):
        model = MagicMock()
        model.ainvoke = AsyncMock(side_effect=RuntimeError("quota exceeded"))
        dispatch = DispatchService(AgentRegistry([make_config("Broken", model=model)]))

        reply = await dispatch.process("hello")

        assert reply == "An error occurred: quota exceeded"

    @pytest.mark.asyncio
    async def test_message_forwarded_unchanged(self, dispatch):
        message = "  keep   my spacing \n"
        assert await dispatch.process(message) == message

    def test_available_agents(self, dispatch):
        assert dispatch.available_agents() == ["Gemini Flash Experimental", "Second Agent"]
