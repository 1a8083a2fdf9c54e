"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment or passed
explicitly in tests. No module-level globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from domain.models import MemoryOptions


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the agent hub.

    Relative paths are resolved against project_root by the components
    that use them.
    """
    project_root: Path

    # MCP tool servers descriptor ({"servers": {...}})
    mcp_config_path: str = "mcp-servers.json"

    # Optional JSON list of agent specs; built-in agents when empty
    agents_config_path: str = ""

    # Memory storage
    memory_db_path: str = ".agenthub/memory.db"
    vector_db_path: str = ".agenthub/vector"

    # ── LLM providers ───────────────────────────────────────────
    # Default provider for agents that don't name one.
    # Allowed: "google", "openai", "groq", "ollama"
    llm_provider: str = "google"

    llm_model_google: str = "gemini-2.0-flash-exp"
    llm_model_ollama: str = "llama3.2"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"

    # Embeddings for semantic recall (local HuggingFace)
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    google_api_key: str = ""
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Agent
    agent_max_iterations: int = 5

    # Memory policy
    memory_last_messages: int = 20
    memory_top_k: int = 3
    memory_range_before: int = 2
    memory_range_after: int = 1
    working_memory_enabled: bool = True
    generate_thread_titles: bool = True

    log_level: str = "INFO"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        return self.model_for(self.llm_provider)

    def model_for(self, provider: str) -> str:
        provider = provider.lower().strip()
        if provider == "openai":
            return self.llm_model_openai
        elif provider == "groq":
            return self.llm_model_groq
        elif provider == "ollama":
            return self.llm_model_ollama
        return self.llm_model_google

    def resolve_path(self, value: str) -> Path:
        """Resolve a configured path relative to the project root."""
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.project_root / path

    def memory_options(self, working_memory_template: str = "") -> MemoryOptions:
        return MemoryOptions(
            last_messages=self.memory_last_messages,
            semantic_top_k=self.memory_top_k,
            semantic_before=self.memory_range_before,
            semantic_after=self.memory_range_after,
            working_memory_enabled=self.working_memory_enabled,
            working_memory_template=working_memory_template,
            generate_titles=self.generate_thread_titles,
        )

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and a .env file if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(
            os.getenv("AGENTHUB_ROOT", str(Path.cwd()))
        ).resolve()

        return cls(
            project_root=root,
            mcp_config_path=os.getenv("MCP_CONFIG_PATH", "mcp-servers.json"),
            agents_config_path=os.getenv("AGENTS_CONFIG_PATH", ""),
            memory_db_path=os.getenv("MEMORY_DB_PATH", ".agenthub/memory.db"),
            vector_db_path=os.getenv("VECTOR_DB_PATH", ".agenthub/vector"),

            llm_provider=os.getenv("LLM_PROVIDER", "google"),
            llm_model_google=os.getenv("LLM_MODEL_GOOGLE", "gemini-2.0-flash-exp"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            embedding_model=os.getenv(
                "EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2",
            ),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            google_api_key=os.getenv("GOOGLE_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),

            agent_max_iterations=int(os.getenv("AGENT_MAX_ITERATIONS", "5")),

            memory_last_messages=int(os.getenv("MEMORY_LAST_MESSAGES", "20")),
            memory_top_k=int(os.getenv("MEMORY_TOP_K", "3")),
            memory_range_before=int(os.getenv("MEMORY_RANGE_BEFORE", "2")),
            memory_range_after=int(os.getenv("MEMORY_RANGE_AFTER", "1")),
            working_memory_enabled=_env_bool("WORKING_MEMORY_ENABLED", True),
            generate_thread_titles=_env_bool("GENERATE_THREAD_TITLES", True),

            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
