"""
application.services.dispatch - "Send a message, get a reply" facade.

Resolves an agent by its whitespace-free key and forwards the message.
Never raises: a missing agent or a failed generation comes back as a
user-facing string.
"""

from __future__ import annotations

import logging
from typing import Optional

from application.context import SessionContext
from domain.ports import AgentLookupPort

logger = logging.getLogger(__name__)


class DispatchService:
    """Routes messages to agents held by an AgentRegistry."""

    def __init__(self, registry: AgentLookupPort):
        self._registry = registry

    def available_agents(self) -> list[str]:
        return self._registry.list_names()

    async def process(
        self,
        message: str,
        agent_name: Optional[str] = None,
        ctx: Optional[SessionContext] = None,
    ) -> str:
        """Send *message* to an agent and return its reply text.

        Args:
            message:    Raw user message, forwarded unchanged.
            agent_name: Agent display name or key; whitespace is ignored.
                        Defaults to the first registered agent.
            ctx:        Optional session context enabling thread memory.
        """
        try:
            logger.info("Processing message: %s", message[:80])

            requested = "".join((agent_name or "").split())
            agent_key = requested or self._registry.default_key

            agent = self._registry.find_by_key(agent_key)
            if agent is None:
                return f'Agent "{agent_name or agent_key}" not found'

            response = await agent.generate(message, ctx)
            return response.text
        except Exception as exc:
            logger.exception("Error while processing message")
            return f"An error occurred: {exc}"
