"""Maximal Marginal Relevance selection over embedded files."""

from __future__ import annotations

import math
from typing import List, Sequence

from ..models import EmbeddedFile, SelectionConfig

README_QUERY = (
    "Explain the purpose, architecture, features, dependencies, setup instructions, "
    "and technical implementation of this repository"
)


def cosine_similarity(left: Sequence[float], right: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0 when either is the zero vector."""
    if len(left) != len(right):
        raise ValueError("Vectors must have the same dimension")
    dot = 0.0
    norm_left = 0.0
    norm_right = 0.0
    for a, b in zip(left, right):
        dot += a * b
        norm_left += a * a
        norm_right += b * b
    if norm_left == 0 or norm_right == 0:
        return 0.0
    return dot / (math.sqrt(norm_left) * math.sqrt(norm_right))


def select_mmr(
    files: Sequence[EmbeddedFile],
    query_vector: Sequence[float],
    config: SelectionConfig,
) -> List[EmbeddedFile]:
    """Greedily pick ``config.top_k`` files trading relevance against redundancy.

    Inputs no larger than ``top_k`` are returned unchanged. Ties go to the file
    that appears first in ``files``.
    """
    if len(files) <= config.top_k:
        return list(files)

    relevance = [cosine_similarity(file.vector, query_vector) for file in files]
    remaining = list(range(len(files)))

    first = max(remaining, key=lambda index: (relevance[index], -index))
    selected = [first]
    remaining.remove(first)

    while len(selected) < config.top_k and remaining:
        best_index = remaining[0]
        best_score = -math.inf
        for index in remaining:
            max_similarity = 0.0
            for chosen in selected:
                max_similarity = max(
                    max_similarity, cosine_similarity(files[index].vector, files[chosen].vector)
                )
            score = config.lam * relevance[index] - (1 - config.lam) * max_similarity
            if score > best_score:
                best_score = score
                best_index = index
        selected.append(best_index)
        remaining.remove(best_index)

    return [files[index] for index in selected]


__all__ = ["README_QUERY", "cosine_similarity", "select_mmr"]
