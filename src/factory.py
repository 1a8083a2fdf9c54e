"""
factory - Composition root for the agent hub.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Host applications (the CLI, a web server, tests) build one
ServiceFactory and pass its services down.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    factory = ServiceFactory(Settings.from_env())   # agents exist, no tools yet
    await factory.initialize()                      # DB schema, vector index,
                                                    # starts MCP tool binding
    await factory.wait_for_tools()                  # optional: tools ready

    dispatch = factory.create_dispatch_service()
    reply = await dispatch.process("hello", "Gemini Flash Experimental")

    await factory.aclose()

Initialization order:
    __init__      tool descriptor loaded, memory service wired, agents
                  constructed with empty tool maps (synchronous)
    initialize()  migrations, vector index load, tool binding task started
    tools task    MCP servers resolved, set_tools_to_all() on the registry

Dispatches made before the tools task finishes see agents without tools.
Await wait_for_tools() when a request must not run in that window.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from domain.exceptions import StorageError
from domain.models import AgentConfig
from domain.ports import ToolResolverPort
from infrastructure.config import Settings
from infrastructure.llm.llm_builder import build_llm
from infrastructure.mcp.client import MCPToolRegistryClient, initialize_tools
from infrastructure.mcp.config_loader import load_tool_config, mcp_server_info
from infrastructure.mcp.schema import ToolServerDescriptor
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.message_repo import SQLiteMessageRepository
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.thread_repo import SQLiteThreadRepository
from infrastructure.persistence.working_memory_repo import SQLiteWorkingMemoryRepository
from infrastructure.vector.message_index import FAISSMessageIndex
from application.services.dispatch import DispatchService
from application.services.memory import MemoryService
from agent.definitions import BASE_INSTRUCTIONS, AgentSpec, load_agent_specs
from agent.prompt import WORKING_MEMORY_TEMPLATE
from agent.registry import AgentRegistry

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Application context: wires all dependencies together.

    Args:
        config:         Settings.
        agent_configs:  Explicit agents (tests, embedding hosts). When None,
                        agents are built from AGENTS_CONFIG_PATH or the built-in
                        list with models from build_llm().
        tool_resolver:  Replaces the MCP client (tests).
        message_index:  Replaces the FAISS index (tests); pass None to use
                        the configured one.
    """

    def __init__(
        self,
        config: Settings,
        *,
        agent_configs: Optional[list[AgentConfig]] = None,
        tool_resolver: Optional[ToolResolverPort] = None,
        message_index: Optional[Any] = None,
    ):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.resolve_path(config.memory_db_path))

        if message_index is None:
            message_index = FAISSMessageIndex(
                config.resolve_path(config.vector_db_path),
                embedding_model=config.embedding_model,
            )
        self._message_index = message_index
        self._memory = MemoryService(
            thread_repo=SQLiteThreadRepository(self._connection),
            message_repo=SQLiteMessageRepository(self._connection),
            working_memory_repo=SQLiteWorkingMemoryRepository(self._connection),
            message_index=self._message_index,
            options=config.memory_options(WORKING_MEMORY_TEMPLATE),
        )

        self._descriptor = load_tool_config(
            config.mcp_config_path, base_dir=config.project_root,
        )

        self._registry = AgentRegistry(
            agent_configs if agent_configs is not None else self._build_agent_configs(),
            max_iterations=config.agent_max_iterations,
        )

        self._tool_resolver = tool_resolver or MCPToolRegistryClient()
        self._tools_task: Optional[asyncio.Task] = None
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, *, bind_tools: bool = True) -> None:
        """One-time startup: run migrations, load the vector index and
        start binding MCP tools in the background.
        """
        logger.info("Initializing ServiceFactory...")

        await run_migrations(self._connection)
        logger.info("Database migrations complete")

        initialize_index = getattr(self._message_index, "initialize", None)
        if initialize_index is not None:
            try:
                await initialize_index()
            except StorageError:
                logger.warning(
                    "Message index unavailable; semantic recall disabled until "
                    "new messages are indexed", exc_info=True,
                )

        self._initialized = True
        if bind_tools:
            self.start_tool_binding()
        logger.info("ServiceFactory ready (%d agent(s))", len(self._registry))

    def start_tool_binding(self) -> asyncio.Task:
        """Schedule MCP tool resolution once; return the tools-ready task."""
        if self._tools_task is None:
            self._tools_task = asyncio.create_task(
                self._bind_tools(), name="agenthub-tool-binding",
            )
        return self._tools_task

    async def wait_for_tools(self) -> dict[str, Any]:
        """Wait until every agent has its tools; start binding if needed."""
        return await self.start_tool_binding()

    @property
    def tools_ready(self) -> bool:
        return self._tools_task is not None and self._tools_task.done()

    async def aclose(self) -> None:
        """Close MCP sessions. Safe to call more than once."""
        if self._tools_task is not None and not self._tools_task.done():
            await asyncio.gather(self._tools_task, return_exceptions=True)
        close = getattr(self._tool_resolver, "aclose", None)
        if close is not None:
            await close()
        logger.info("ServiceFactory closed")

    async def _bind_tools(self) -> dict[str, Any]:
        tools = await initialize_tools(self._descriptor, self._tool_resolver)
        self._registry.set_tools_to_all(tools)
        logger.info("All agents initialized")
        return tools

    # ------------------------------------------------------------------
    # Accessors / service creation
    # ------------------------------------------------------------------

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def descriptor(self) -> ToolServerDescriptor:
        return self._descriptor

    def mcp_server_info(self) -> dict[str, Any]:
        return mcp_server_info(self._descriptor)

    def create_memory_service(self) -> MemoryService:
        """The shared MemoryService (requires initialize())."""
        self._ensure_initialized()
        return self._memory

    def create_dispatch_service(self) -> DispatchService:
        """A DispatchService over the agent registry (requires initialize())."""
        self._ensure_initialized()
        return DispatchService(self._registry)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_agent_configs(self) -> list[AgentConfig]:
        path = (
            self._config.resolve_path(self._config.agents_config_path)
            if self._config.agents_config_path else None
        )
        specs = load_agent_specs(path)
        return [
            AgentConfig(
                name=spec.name,
                model=self._build_model(spec),
                instructions=spec.instructions or BASE_INSTRUCTIONS,
                memory=self._memory,
            )
            for spec in specs
        ]

    def _build_model(self, spec: AgentSpec):
        provider = spec.provider or self._config.llm_provider
        return build_llm(
            provider=provider,
            model=spec.model or self._config.model_for(provider),
            temperature=spec.temperature,
            ollama_base_url=self._config.ollama_base_url,
            google_api_key=self._config.google_api_key,
            openai_api_key=self._config.openai_api_key,
            groq_api_key=self._config.groq_api_key,
        )

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
