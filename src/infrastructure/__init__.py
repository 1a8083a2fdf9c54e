"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain chat models, MCP sessions,
FAISS, HuggingFace embeddings, SQLite.
Depends on domain/ only (implements ports). Never imported by application/.
"""
