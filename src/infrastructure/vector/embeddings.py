"""
infrastructure.vector.embeddings - Embedding model construction.
"""

from __future__ import annotations

import logging

from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def build_embeddings(model_name: str) -> Embeddings:
    """Local HuggingFace sentence embeddings, normalized for cosine search."""
    from langchain_huggingface import HuggingFaceEmbeddings

    logger.info("Loading embedding model %s", model_name)
    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )
