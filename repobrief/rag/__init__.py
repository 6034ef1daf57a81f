"""Embedding, relevance scoring and diversity selection."""

from .bm25 import compress_text
from .clients import EmbeddingClient, HashingEmbeddingClient, HttpEmbeddingClient
from .embedder import EmbeddingGenerator
from .selector import README_QUERY, cosine_similarity, select_mmr

__all__ = [
    "EmbeddingClient",
    "EmbeddingGenerator",
    "HashingEmbeddingClient",
    "HttpEmbeddingClient",
    "README_QUERY",
    "compress_text",
    "cosine_similarity",
    "select_mmr",
]
