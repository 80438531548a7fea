"""String helpers for interest matching.

``normalize_label`` and ``label_similarity`` define the base score;
``context_bonus`` is the optional relevance boost applied on top of it.
"""

import re
from typing import Dict, Tuple

from rapidfuzz.distance import Levenshtein

from targeting.domain.models import Candidate

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE_RUN = re.compile(r"\s+")

CONTEXT_MATCH_BONUS = 0.1

# Criterion keyword -> words that mark a suggestion as belonging to that family
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "singer": ("music", "artist", "vocal", "band", "performer"),
    "actor": ("movie", "film", "television", "tv", "cinema", "theater"),
    "athlete": ("sport", "team", "player", "championship", "olympic"),
    "politician": ("politics", "government", "party", "election", "minister"),
    "writer": ("book", "author", "novel", "literature", "publication"),
    "artist": ("art", "painting", "gallery", "creative", "design"),
}


def normalize_label(text: str) -> str:
    """Lower-case, strip, drop non-word characters, collapse whitespace.

    The steps run in that order, so punctuation removal can leave a single
    trailing space (``"nike -"`` becomes ``"nike "``).

    Example:
        >>> normalize_label("  Coca-Cola   Zero! ")
        'cocacola zero'
    """
    normalized = text.lower().strip()
    normalized = _NON_WORD.sub("", normalized)
    return _WHITESPACE_RUN.sub(" ", normalized)


def label_similarity(normalized_a: str, normalized_b: str) -> float:
    """Normalized Levenshtein similarity of two already-normalized labels.

    ``1 - distance / max(len_a, len_b)``; 0.0 when either side is empty.
    """
    if not normalized_a or not normalized_b:
        return 0.0
    return Levenshtein.normalized_similarity(normalized_a, normalized_b)


def context_bonus(query: str, candidate: Candidate) -> float:
    """Relevance boost for a suggestion whose taxonomy context fits the query.

    Matching is on the lower-cased query as typed, punctuation included.
    +0.1 when the query appears in the suggestion's path or description, and
    +0.1 for each category family named in the query that the suggestion's
    name, path or description mentions.
    """
    query_lower = query.lower()
    if not query_lower.strip():
        return 0.0

    path_text = " ".join(candidate.path).lower()
    description = (candidate.description or "").lower()
    name = candidate.name.lower()

    bonus = 0.0
    if query_lower in path_text or query_lower in description:
        bonus += CONTEXT_MATCH_BONUS

    for category, keywords in CATEGORY_KEYWORDS.items():
        if category not in query_lower:
            continue
        if any(kw in name or kw in path_text or kw in description for kw in keywords):
            bonus += CONTEXT_MATCH_BONUS

    return bonus
