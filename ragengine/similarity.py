"""Cosine similarity scoring and thresholded ranking."""

from collections.abc import Sequence
from numbers import Real
from typing import Any

import numpy as np


def _as_vector(value: Any) -> np.ndarray | None:
    """Coerce a vector-like value into a 1-D float array.

    Returns:
        The float array, or None if the value is not a numeric vector.
    """
    if isinstance(value, np.ndarray):
        if value.ndim != 1 or not np.issubdtype(value.dtype, np.number):
            return None
        vector = value.astype("float64")
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if not all(isinstance(item, Real) for item in value):
            return None
        vector = np.asarray(value, dtype="float64")
    else:
        return None
    # NaN and inf components count as zero
    return np.nan_to_num(vector, nan=0.0, posinf=0.0, neginf=0.0)


def cosine_similarity(a: Any, b: Any) -> float:
    """Compute cosine similarity between two vectors.

    Malformed input (non-numeric, empty, mismatched length or zero norm)
    scores 0.0 instead of raising.

    Returns:
        Similarity clamped to [-1, 1].
    """
    vec_a = _as_vector(a)
    vec_b = _as_vector(b)
    if vec_a is None or vec_b is None:
        return 0.0
    if vec_a.size == 0 or vec_a.shape != vec_b.shape:
        return 0.0

    denominator = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
    if denominator == 0:
        return 0.0

    similarity = float(np.dot(vec_a, vec_b)) / denominator
    return min(max(similarity, -1.0), 1.0)


def rank_scored(
    query_embedding: Any,
    texts: Sequence[str],
    embeddings: Sequence[Any],
    threshold: float,
    limit: int,
) -> list[tuple[str, float]]:
    """Score every text against the query and keep the best matches.

    Texts scoring below ``threshold`` are dropped, the rest are sorted by
    descending similarity and capped at ``limit``. The sort is stable, so
    equal scores keep their insertion order.

    Returns:
        Ranked list of (text, similarity) tuples.
    """
    if limit <= 0:
        return []

    scored = [
        (index, cosine_similarity(query_embedding, embedding))
        for index, embedding in enumerate(embeddings)
    ]
    retained = [item for item in scored if item[1] >= threshold]
    retained.sort(key=lambda item: item[1], reverse=True)
    return [(texts[index], score) for index, score in retained[:limit]]


def rank(
    query_embedding: Any,
    texts: Sequence[str],
    embeddings: Sequence[Any],
    threshold: float,
    limit: int,
) -> list[str]:
    """Rank texts by similarity to the query.

    Returns:
        The retained texts, most similar first.
    """
    return [
        text
        for text, _ in rank_scored(query_embedding, texts, embeddings, threshold, limit)
    ]
