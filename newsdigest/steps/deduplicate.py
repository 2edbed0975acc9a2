"""
Near-duplicate detection between normalized article leads.

Two leads are near-duplicates when they re-report the same facts in mostly the
same words. Similarity is the Jaccard index over lowercase word *sets*, so it
ignores word order and repetition:

    similarity = |words(a) & words(b)| / |words(a) | words(b)|

Each comparison is cheap; the caller (the evidence reducer) owns the pairwise
loop and keeps it bounded through its item budget.

Empty input
-----------
Two empty strings have an empty union; their similarity is defined as 1.0.
In the pipeline this case never decides anything: empty leads already share
the EMPTY_FINGERPRINT of the normalizer and are dropped as exact duplicates
before any near-duplicate comparison happens.
"""

from typing import FrozenSet

DEFAULT_THRESHOLD = 0.8


def check_threshold(threshold: float) -> float:
    if threshold is None or not 0.0 <= float(threshold) <= 1.0:
        raise ValueError(f"similarity threshold must be within [0, 1], got {threshold!r}")
    return float(threshold)


def word_set(text: str) -> FrozenSet[str]:
    return frozenset((text or "").lower().split())


def jaccard_similarity(a: str, b: str) -> float:
    set_a, set_b = word_set(a), word_set(b)
    union = set_a | set_b
    if not union:
        return 1.0
    return len(set_a & set_b) / len(union)


def is_near_duplicate(a: str, b: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return jaccard_similarity(a, b) >= check_threshold(threshold)
