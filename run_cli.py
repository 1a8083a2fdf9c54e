"""
Run the agent hub CLI without installing the package.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    agents       List configured agents (default marked)
    tools        Show configured MCP servers
    tools-check  Validate mcp-servers.json strictly
    ask          One-shot message  (--agent, --resource, --thread)
    chat         Interactive chat  (--agent, --resource, --new)
    threads      List the threads of a resource

Examples:
    python run_cli.py ask "hello" --agent "Gemini Flash Experimental"
    python run_cli.py chat --resource alice

Environment variables (all optional):
    LLM_PROVIDER        "google", "openai", "groq", or "ollama" (default: google)
    LLM_MODEL_GOOGLE    Model name when LLM_PROVIDER=google (default: gemini-2.0-flash-exp)
    GOOGLE_API_KEY      Required for the google provider
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    MCP_CONFIG_PATH     MCP server descriptor (default: mcp-servers.json)
    AGENTS_CONFIG_PATH  JSON list of agent specs (default: built-in agents)
    MEMORY_DB_PATH      SQLite memory database (default: .agenthub/memory.db)
    VECTOR_DB_PATH      FAISS message index dir (default: .agenthub/vector)
    LOG_LEVEL           Logging level (default: INFO)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
