"""
Keyphrase set helpers

Keyphrases are kept as ordered sets: upstream order is preserved (it carries
the extractor's ranking) while duplicates and blanks are dropped. Matching
only ever looks at set membership, so the order never changes a result.
"""
from typing import Iterable, List, Optional


def normalize_phrases(phrases: Optional[Iterable[str]]) -> List[str]:
    """
    Normalize a keyphrase sequence into an ordered set.

    - Strips surrounding whitespace
    - Drops empty entries
    - Removes duplicates, keeping the first occurrence

    Args:
        phrases: Any iterable of strings (or None)

    Returns:
        List of unique, non-empty phrases in first-seen order
    """
    if not phrases:
        return []

    seen = set()
    result = []
    for phrase in phrases:
        if phrase is None:
            continue
        phrase = str(phrase).strip()
        if not phrase or phrase in seen:
            continue
        seen.add(phrase)
        result.append(phrase)
    return result


def contains_all(stored: Iterable[str], tags: Iterable[str]) -> bool:
    """
    Asymmetric containment test: every tag must appear in the stored phrases.

    Mirrors Postgres `stored @> tags` for text arrays.
    """
    return set(tags).issubset(set(stored))
