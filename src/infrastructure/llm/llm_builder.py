"""
infrastructure.llm.llm_builder - Centralized LLM construction.

Single source of truth for building chat models for every agent. The
default provider is controlled by the LLM_PROVIDER environment variable,
individual agent specs may name their own.

Supported providers:
    - "google"  → langchain_google_genai.ChatGoogleGenerativeAI
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("google", "openai", "groq", "ollama")


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    ollama_base_url: str = "http://localhost:11434/",
    google_api_key: str = "",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build a tool-calling chat model for the given provider.

    Provider packages are imported lazily so only the one in use has to
    be installed.

    Raises:
        ValueError: If the provider is unknown or required credentials are missing.
    """
    provider = provider.lower().strip()

    if provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        if not google_api_key:
            raise ValueError("GOOGLE_API_KEY is required for provider 'google'")

        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "google_api_key": google_api_key,
        }
        if max_tokens is not None:
            kwargs["max_output_tokens"] = max_tokens

        logger.info("Building Google Gemini chat model (model=%s)", model)
        return ChatGoogleGenerativeAI(**kwargs)

    elif provider == "openai":
        from langchain_openai import ChatOpenAI

        if not openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for provider 'openai'")

        kwargs = {
            "model": model,
            "temperature": temperature,
            "api_key": openai_api_key,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        logger.info("Building OpenAI chat model (model=%s)", model)
        return ChatOpenAI(**kwargs)

    elif provider == "groq":
        from langchain_groq import ChatGroq

        if not groq_api_key:
            raise ValueError("GROQ_API_KEY is required for provider 'groq'")

        kwargs = {
            "model": model,
            "temperature": temperature,
            "api_key": groq_api_key,
            "max_tokens": max_tokens if max_tokens is not None else 512,
        }

        logger.info("Building Groq chat model (model=%s)", model)
        return ChatGroq(**kwargs)

    elif provider == "ollama":
        from langchain_ollama import ChatOllama

        kwargs = {
            "model": model,
            "temperature": temperature,
            "base_url": ollama_base_url,
        }
        if max_tokens is not None:
            kwargs["num_predict"] = max_tokens

        logger.info("Building ChatOllama (model=%s)", model)
        return ChatOllama(**kwargs)

    else:
        raise ValueError(
            f"Unsupported LLM provider: '{provider}'. "
            f"Must be one of {', '.join(SUPPORTED_PROVIDERS)}."
        )
