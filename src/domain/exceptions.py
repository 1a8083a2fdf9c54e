"""
domain.exceptions - Custom exception hierarchy for the agent hub.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""

from __future__ import annotations

from pathlib import Path


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class StorageError(DomainError):
    """Raised when the memory store (SQLite or vector index) fails."""


class NotFoundError(DomainError):
    """Raised when a requested record (e.g. a thread) does not exist."""


class ThreadOwnershipError(DomainError):
    """Raised when a thread is used on behalf of a resource that does not own it."""


class ToolConfigError(DomainError):
    """Raised by the strict tool descriptor loader."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"{detail}: {path}")


class MissingToolConfigError(ToolConfigError):
    def __init__(self, path: Path) -> None:
        super().__init__(path=path, detail="Tool server config file not found")


class InvalidToolConfigError(ToolConfigError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(path=path, detail=f"Invalid tool server config ({detail})")


class ToolResolutionError(DomainError):
    """Raised when an MCP server cannot be connected or listed."""


class AgentRegistryError(DomainError):
    """Raised when the agent registry is constructed from invalid configs."""


class EmptyRegistryError(AgentRegistryError):
    """Raised when no agent configurations are supplied."""


class DuplicateAgentError(AgentRegistryError):
    """Raised when two agents share the same (normalized) name."""


class GenerationError(DomainError):
    """Raised when the model produces no usable answer."""
