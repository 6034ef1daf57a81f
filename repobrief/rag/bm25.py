"""BM25 extractive compression used when no embedding vectors are available."""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import List, Optional

K1 = 1.2
B = 0.75
DEFAULT_RATIO = 0.6
MIN_UNITS = 3

_UNIT_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")
_NON_WORD = re.compile(r"[^\w\s]")


def split_units(text: str) -> List[str]:
    """Split ``text`` into sentence-like units on terminal punctuation."""
    units = [match.group(0).strip() for match in _UNIT_PATTERN.finditer(text)]
    return [unit for unit in units if unit]


def tokenize(unit: str) -> List[str]:
    cleaned = _NON_WORD.sub(" ", unit.lower())
    return [term for term in cleaned.split() if len(term) > 1]


def score_units(units: List[str]) -> List[float]:
    """Return the BM25 score of each unit against the corpus of all units."""
    corpus = [tokenize(unit) for unit in units]
    total = len(corpus)
    if total == 0:
        return []

    doc_frequency: Counter[str] = Counter()
    for terms in corpus:
        doc_frequency.update(set(terms))
    avg_length = sum(len(terms) for terms in corpus) / total or 1.0

    scores: List[float] = []
    for terms in corpus:
        counts = Counter(terms)
        length_norm = 1 - B + B * (len(terms) / avg_length)
        score = 0.0
        for term, tf in counts.items():
            df = doc_frequency[term]
            idf = math.log((total - df + 0.5) / (df + 0.5) + 1)
            score += idf * (tf * (K1 + 1)) / (tf + K1 * length_norm)
        scores.append(score)
    return scores


def compress_text(
    text: str,
    *,
    ratio: float = DEFAULT_RATIO,
    target_units: Optional[int] = None,
) -> str:
    """Keep the highest-scoring units of ``text`` in their original order.

    Corpora of three units or fewer are returned unchanged.
    """
    units = split_units(text)
    if len(units) <= MIN_UNITS:
        return text

    if target_units is not None:
        keep = max(1, min(len(units), target_units))
    else:
        bounded = min(max(ratio, 0.0), 1.0)
        keep = max(1, math.ceil(len(units) * bounded))

    scores = score_units(units)
    # sorted() is stable, so equal scores keep the earlier unit first.
    ranked = sorted(range(len(units)), key=lambda index: scores[index], reverse=True)
    chosen = sorted(ranked[:keep])
    return " ".join(units[index] for index in chosen)


__all__ = ["compress_text", "score_units", "split_units", "tokenize"]
