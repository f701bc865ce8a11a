"""
Cosine similarity helpers for comparing embeddings.
"""

from typing import Iterable, Optional, Sequence, Union

import numpy as np

from .models import Candidate, Match

VectorLike = Union[np.ndarray, Sequence[float]]


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Compute cosine similarity between two vectors.

    Vectors of different length, empty vectors and zero vectors all score 0.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.size == 0 or a.shape != b.shape:
        return 0.0
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def best_match(
    query: VectorLike,
    candidates: Iterable[Candidate],
    threshold: float,
) -> Optional[Match]:
    """Return the highest-scoring candidate at or above threshold.

    Ties keep the earliest candidate. Candidates with an empty vector are skipped.
    """
    best: Optional[Match] = None
    for candidate in candidates:
        if np.size(candidate.vector) == 0:
            continue
        score = cosine_similarity(query, candidate.vector)
        if score >= threshold and (best is None or score > best.score):
            best = Match(node_id=candidate.node_id, score=score)
    return best
