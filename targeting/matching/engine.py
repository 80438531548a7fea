"""Ranking of ads-platform interest suggestions against one criterion.

The ranking:
1. Normalizes the criterion and every suggestion name the same way
2. Scores each pair with normalized Levenshtein similarity
3. Rounds to 2 decimals, drops scores below the threshold
4. Sorts best-first, keeping input order between equal scores
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from targeting.config.models import MatchingConfig
from targeting.domain.models import Candidate, ScoredCandidate

from .exceptions import InvalidArgumentError, InvalidCandidateError
from .utils import context_bonus, label_similarity, normalize_label

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.3

CandidateLike = Union[Candidate, Mapping[str, Any]]


class InterestMatcher:
    """Scores and filters interest suggestions for a criterion.

    With the default options this is a pure function of its inputs. The two
    optional behaviours, ``context_bonus`` and ``deduplicate_names``, are off
    unless enabled in the matching configuration.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        context_bonus: bool = False,
        deduplicate_names: bool = False,
        logger_instance: logging.Logger = None,
    ):
        """Initialize InterestMatcher.

        Args:
            threshold: Default minimum rounded score for ``rank``
            context_bonus: Add the taxonomy-context relevance bonus to scores
            deduplicate_names: Keep one suggestion per (case-insensitive) name
            logger_instance: Optional logger instance (defaults to module logger)
        """
        self.threshold = _validate_threshold(threshold)
        self.context_bonus = context_bonus
        self.deduplicate_names = deduplicate_names
        self.logger = logger_instance or logger

    @classmethod
    def from_config(cls, matching_config: MatchingConfig) -> "InterestMatcher":
        return cls(
            threshold=matching_config.similarity_threshold,
            context_bonus=matching_config.context_bonus,
            deduplicate_names=matching_config.deduplicate_names,
        )

    def rank(
        self,
        query: str,
        candidates: Iterable[CandidateLike],
        threshold: Optional[float] = None,
    ) -> List[ScoredCandidate]:
        """Rank candidates by similarity to ``query``, best first.

        Args:
            query: Criterion text; an empty or punctuation-only query scores 0
            candidates: Candidate models or mappings with at least ``id`` and ``name``
            threshold: Minimum rounded score (inclusive); defaults to the matcher's

        Returns:
            ScoredCandidates with score >= threshold, sorted by score descending

        Raises:
            InvalidArgumentError: If query is not a string or threshold is not a number
            InvalidCandidateError: If a candidate has no usable name
        """
        if not isinstance(query, str):
            raise InvalidArgumentError(f"query must be a string, got {type(query).__name__}")
        threshold = self.threshold if threshold is None else _validate_threshold(threshold)

        parsed = [_coerce_candidate(item, index) for index, item in enumerate(candidates)]
        if not parsed:
            return []

        if self.deduplicate_names:
            parsed = _deduplicate_by_name(parsed)

        normalized_query = normalize_label(query)
        scored = [
            ScoredCandidate.from_candidate(candidate, self.score(query, normalized_query, candidate))
            for candidate in parsed
        ]

        kept = [item for item in scored if item.similarity_score >= threshold]
        # sorted() is stable: equal scores keep input order
        kept = sorted(kept, key=lambda item: item.similarity_score, reverse=True)

        self.logger.debug(
            f"Ranked {len(parsed)} suggestions for '{query}', kept {len(kept)}",
            extra={
                "event": "matching.ranked",
                "candidate_count": len(parsed),
                "kept_count": len(kept),
                "threshold": threshold,
                "best_score": kept[0].similarity_score if kept else None,
            },
        )
        return kept

    def score(self, query: str, normalized_query: str, candidate: Candidate) -> float:
        """Rounded score of one candidate; the context bonus looks at the raw query."""
        score = label_similarity(normalized_query, normalize_label(candidate.name))
        if self.context_bonus and normalized_query:
            score = min(score + context_bonus(query, candidate), 1.0)
        return round(score, 2)


def rank(
    query: str,
    candidates: Iterable[CandidateLike],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[ScoredCandidate]:
    """Rank candidates against ``query`` with the plain similarity score.

    Example:
        >>> ranked = rank("Nike", [{"id": "1", "name": "Nike Inc."}, {"id": "2", "name": "Adidas"}])
        >>> [(c.id, c.similarity_score) for c in ranked]
        [('1', 0.5)]
    """
    return InterestMatcher(threshold=threshold).rank(query, candidates)


def _validate_threshold(threshold: Any) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidArgumentError(f"threshold must be a number, got {threshold!r}")
    if math.isnan(threshold):
        raise InvalidArgumentError("threshold must not be NaN")
    return float(threshold)


def _coerce_candidate(item: CandidateLike, index: int) -> Candidate:
    if isinstance(item, Candidate):
        return item

    if not isinstance(item, Mapping):
        raise InvalidCandidateError(
            f"Candidate at index {index} must be a mapping or Candidate, got {type(item).__name__}",
            index=index,
        )
    if not isinstance(item.get("name"), str):
        raise InvalidCandidateError(f"Candidate at index {index} has no name", index=index)

    try:
        return Candidate.model_validate(item)
    except ValidationError as e:
        raise InvalidCandidateError(
            f"Candidate at index {index} is malformed: {e.error_count()} validation error(s)",
            index=index,
        ) from e


def _deduplicate_by_name(candidates: List[Candidate]) -> List[Candidate]:
    """Keep one candidate per lower-cased name, preferring the larger known audience.

    The survivor takes the position of the first candidate with that name.
    """
    best: dict = {}
    for candidate in candidates:
        key = candidate.name.lower()
        current = best.get(key)
        if current is None or (candidate.audience_size or 0) > (current.audience_size or 0):
            best[key] = candidate
    # dicts preserve first-insertion order of keys
    return list(best.values())
