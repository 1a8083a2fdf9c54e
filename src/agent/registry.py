"""
agent.registry - Ordered, name-keyed set of agents.

Lifecycle:
    1. Constructed (sync):  one Agent per AgentConfig, every tool map empty.
    2. Tooled (async):      set_tools_to_all() gives every agent the same
                            resolved tool map once MCP initialization ends.

Two lookups with different contracts:
    get_agent / resolve_or_default  exact name, else the first agent
    find_agent / find               exact name, else None
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from domain.exceptions import AgentRegistryError, DuplicateAgentError, EmptyRegistryError
from domain.models import AgentConfig
from agent.agent import Agent

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_agent_key(name: str) -> str:
    """Lookup key of an agent name: all whitespace removed."""
    return _WHITESPACE.sub("", name)


class AgentRegistry:
    """Builds agents from configs and hands them out by name."""

    def __init__(self, configs: Iterable[AgentConfig], *, max_iterations: int = 5):
        configs = list(configs)
        if not configs:
            raise EmptyRegistryError("At least one agent configuration is required")

        seen: dict[str, str] = {}
        for config in configs:
            key = normalize_agent_key(config.name)
            if not key:
                raise AgentRegistryError("Agent name must not be blank")
            if key in seen:
                raise DuplicateAgentError(
                    f"Duplicate agent name '{config.name}' "
                    f"(conflicts with '{seen[key]}')"
                )
            seen[key] = config.name

        self._agents: tuple[Agent, ...] = tuple(
            Agent(config, max_iterations=max_iterations) for config in configs
        )
        self._by_key: dict[str, Agent] = {
            normalize_agent_key(agent.name): agent for agent in self._agents
        }
        logger.info("Initialized %d agent(s)", len(self._agents))

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_agent(name) is not None

    @property
    def agents(self) -> tuple[Agent, ...]:
        return self._agents

    @property
    def default_agent(self) -> Agent:
        return self._agents[0]

    @property
    def default_key(self) -> str:
        return normalize_agent_key(self._agents[0].name)

    def get_agent(self, name: Optional[str] = None) -> Agent:
        """Agent named *name*, or the first registered agent."""
        if name:
            found = self.find_agent(name)
            if found is not None:
                return found
        return self._agents[0]

    resolve_or_default = get_agent

    def find_agent(self, name: str) -> Optional[Agent]:
        """Agent whose name equals *name* exactly, or None."""
        return next((agent for agent in self._agents if agent.name == name), None)

    find = find_agent

    def find_by_key(self, key: str) -> Optional[Agent]:
        """Agent whose whitespace-free name equals the whitespace-free *key*."""
        return self._by_key.get(normalize_agent_key(key))

    def list_names(self) -> list[str]:
        return [agent.name for agent in self._agents]

    def set_tools_to_all(self, tools: Mapping[str, Any]) -> None:
        """Give every agent the same read-only snapshot of *tools*."""
        snapshot = MappingProxyType(dict(tools))
        for agent in self._agents:
            agent.tools = snapshot
        logger.info(
            "Set %d tool(s) on %d agent(s)", len(snapshot), len(self._agents),
        )
