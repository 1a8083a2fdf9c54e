"""
agent.definitions - Built-in agent specs and shared instructions.

An AgentSpec names a provider/model pair; the factory turns specs into
AgentConfig objects with a concrete chat model. Specs can also be loaded
from a JSON list (AGENTS_CONFIG_PATH):

    [{"name": "Gemini Flash Experimental", "provider": "google",
      "model": "gemini-2.0-flash-exp"}]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

BASE_INSTRUCTIONS = """
You are a capable conversational agent.
Answer the user's questions concisely and accurately.

RESPONSE GUIDELINES:
- Understand the user's question or request precisely and respond to it.
- Keep answers short and well structured.
- Answer only the current question. Do not re-answer earlier questions
  from the conversation history unless the user asks for it.
- If you don't know something, say so honestly.
- Use the available tools whenever they improve the answer.

TOOL USAGE:
- Call a tool when it is the right moment to do so.
- Set every required parameter before calling a tool.
- Interpret tool results and explain them to the user in plain language.

MEMORY:
- Remember earlier exchanges and keep the conversation context.
- Remember the user's preferences and interests and personalize your answers.
"""


class AgentSpec(BaseModel):
    """Declarative description of one agent."""

    model_config = ConfigDict(frozen=True)

    name: str
    provider: Optional[str] = None
    model: Optional[str] = None
    instructions: Optional[str] = None
    temperature: float = 0

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Agent name must not be blank")
        return value


DEFAULT_AGENT_SPECS: tuple[AgentSpec, ...] = (
    AgentSpec(
        name="Gemini Flash Experimental",
        provider="google",
        model="gemini-2.0-flash-exp",
    ),
)

_SPEC_LIST = TypeAdapter(list[AgentSpec])


def load_agent_specs(path: Optional[Path]) -> list[AgentSpec]:
    """Read agent specs from a JSON file, or return the built-in ones.

    Raises:
        pydantic.ValidationError / ValueError: If the file content is invalid.
    """
    if path is None:
        return list(DEFAULT_AGENT_SPECS)
    payload = json.loads(path.read_text(encoding="utf-8"))
    return _SPEC_LIST.validate_python(payload)
