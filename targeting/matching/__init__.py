"""Similarity matching of criteria against ads-platform interest suggestions.

This module provides:
- rank: rank suggestions against one criterion (pure, deterministic)
- InterestMatcher: configurable ranker used by the batch processor
- normalize_label / label_similarity: the scoring primitives
"""

from .engine import DEFAULT_THRESHOLD, InterestMatcher, rank
from .exceptions import InvalidArgumentError, InvalidCandidateError
from .utils import context_bonus, label_similarity, normalize_label

__all__ = [
    "rank",
    "InterestMatcher",
    "DEFAULT_THRESHOLD",
    "InvalidArgumentError",
    "InvalidCandidateError",
    "normalize_label",
    "label_similarity",
    "context_bonus",
]
