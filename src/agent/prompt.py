"""
agent.prompt - System prompt assembly for the conversational agents.

The static instructions of an agent are extended per turn with the
resource's working memory document and the names of the tools bound for
that turn.
"""

from __future__ import annotations

from typing import Iterable, Optional

WORKING_MEMORY_TOOL = "update_working_memory"

WORKING_MEMORY_TEMPLATE = """
# User information
- **Name**:
- **Preferences**:
- **Interests**:
"""


def build_system_prompt(
    instructions: str,
    *,
    working_memory: Optional[str] = None,
    tool_names: Iterable[str] = (),
) -> str:
    """Build the system prompt for one generation turn.

    Args:
        instructions:   The agent's fixed instructions.
        working_memory: Current working memory document, or None when
                        working memory is disabled for this turn.
        tool_names:     Names of the tools bound for this turn.

    Returns:
        The system prompt string.
    """
    names = list(tool_names)
    sections = [instructions.strip()]

    if names:
        sections.append(
            "AVAILABLE TOOLS:\n" + "\n".join(f"- {name}" for name in names)
        )

    if working_memory is not None:
        memory_rule = (
            f"Call '{WORKING_MEMORY_TOOL}' with the complete updated document "
            "whenever you learn something new about the user. "
            "Keep the same markdown structure."
        ) if WORKING_MEMORY_TOOL in names else ""
        sections.append(
            "WORKING MEMORY (what you know about the user):\n"
            f"{working_memory.strip() or '(empty)'}\n"
            f"{memory_rule}".rstrip()
        )

    return "\n\n".join(sections)
