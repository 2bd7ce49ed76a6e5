"""
Cheap, explainable text similarity used for event titles and locations.

Scores are in [0, 1]; identical text scores 1.0, containment scores 0.8,
and everything else falls back to word-set Jaccard overlap.
"""

from typing import Optional

from services.building_ops.core.normalizer import normalize_text, tokenize

CONTAINMENT_SCORE = 0.8


def jaccard(tokens_a: set, tokens_b: set) -> float:
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity between two strings.

    1. Equal after normalization -> 1.0
    2. One contains the other -> 0.8
    3. Otherwise Jaccard overlap of whitespace tokens

    Either side empty -> 0.0.
    """
    s1 = normalize_text(a)
    s2 = normalize_text(b)
    # Checked before containment: "" is a substring of anything, so an empty
    # title or location would otherwise score 0.8
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SCORE
    return jaccard(set(s1.split()), set(s2.split()))


def token_similarity(a: Optional[str], b: Optional[str], min_length: int = 3) -> float:
    """
    Jaccard overlap on words of at least ``min_length`` characters.

    Used when scoring match suggestions, where short words ("the", "of",
    room letters) would otherwise inflate the score.
    """
    words_a = tokenize(a, min_length=min_length)
    words_b = tokenize(b, min_length=min_length)
    if not words_a or not words_b:
        return 0.0
    return jaccard(words_a, words_b)
