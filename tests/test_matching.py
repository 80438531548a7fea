"""Unit tests for interest ranking.

Tests the InterestMatcher including:
- Label normalization and base similarity scores
- Threshold filtering (inclusive) and best-first ordering
- Stable ordering of equal scores
- Input validation
- Optional context bonus and name de-duplication
"""

import copy

import pytest

from targeting.config.models import MatchingConfig
from targeting.domain.models import Candidate, ScoredCandidate
from targeting.matching import (
    DEFAULT_THRESHOLD,
    InterestMatcher,
    InvalidArgumentError,
    InvalidCandidateError,
    context_bonus,
    label_similarity,
    normalize_label,
    rank,
)


class TestNormalizeLabel:
    """Tests for normalize_label."""

    def test_lowercases_and_strips(self):
        assert normalize_label("  NIKE  ") == "nike"

    def test_removes_punctuation(self):
        assert normalize_label("Coca-Cola") == "cocacola"
        assert normalize_label("Nike, Inc.") == "nike inc"

    def test_collapses_whitespace(self):
        assert normalize_label("Louis   Vuitton\tParis") == "louis vuitton paris"

    def test_removal_after_strip_can_leave_trailing_space(self):
        assert normalize_label("nike -") == "nike "

    def test_keeps_accented_letters(self):
        assert normalize_label("Citroën") == "citroën"

    def test_punctuation_only_becomes_empty(self):
        assert normalize_label("?!...") == ""


class TestLabelSimilarity:
    """Tests for label_similarity."""

    def test_identical_labels(self):
        assert label_similarity("nike", "nike") == 1.0

    def test_empty_side_scores_zero(self):
        assert label_similarity("", "nike") == 0.0
        assert label_similarity("nike", "") == 0.0

    def test_partial_similarity(self):
        # distance 4 over max length 8
        assert label_similarity("nike", "nike inc") == pytest.approx(0.5)


class TestRank:
    """Tests for the module-level rank function."""

    def test_basic_ranking(self):
        ranked = rank("Nike", [
            {"id": "1", "name": "Nike Inc."},
            {"id": "2", "name": "Adidas"},
        ])

        assert [(c.id, c.similarity_score) for c in ranked] == [("1", 0.5)]

    def test_returns_scored_candidates(self):
        ranked = rank("Nike", [{"id": "1", "name": "Nike", "audience_size": 100}])

        assert len(ranked) == 1
        assert isinstance(ranked[0], ScoredCandidate)
        assert ranked[0].similarity_score == 1.0
        assert ranked[0].audience_size == 100

    def test_sorted_best_first(self):
        ranked = rank("nike", [
            {"id": "inc", "name": "Nike Inc"},
            {"id": "nikon", "name": "Nikon"},
            {"id": "exact", "name": "NIKE"},
        ])

        assert [c.id for c in ranked] == ["exact", "nikon", "inc"]
        assert [c.similarity_score for c in ranked] == [1.0, 0.6, 0.5]

    def test_scores_rounded_to_two_decimals(self):
        ranked = rank("coca cola", [{"id": "1", "name": "Coca-Cola"}])

        # distance 1 over max length 9
        assert ranked[0].similarity_score == 0.89

    def test_threshold_is_inclusive(self):
        candidates = [{"id": "1", "name": "Nike Inc"}]

        assert len(rank("Nike", candidates, threshold=0.5)) == 1
        assert rank("Nike", candidates, threshold=0.51) == []

    def test_equal_scores_keep_input_order(self):
        ranked = rank("Nike", [
            {"id": "b", "name": "nike"},
            {"id": "a", "name": "Nike"},
            {"id": "c", "name": "NIKE!"},
        ])

        assert [c.id for c in ranked] == ["b", "a", "c"]

    def test_same_input_same_output(self):
        candidates = [
            {"id": "1", "name": "Nike Inc", "audience_size": 812000000},
            {"id": "2", "name": "nike", "audience_size": None},
            {"id": "3", "name": "NIKE!", "path": ["Interests", "Nike"]},
            {"id": "4", "name": "Adidas", "audience_size": 0},
        ]
        snapshot = copy.deepcopy(candidates)

        first = rank("Nike", candidates, threshold=0.3)
        second = rank("Nike", candidates, threshold=0.3)

        assert first == second
        assert [c.id for c in first] == ["2", "3", "1"]
        assert first[0].audience_size is None
        assert candidates == snapshot

    def test_empty_candidates(self):
        assert rank("Nike", []) == []

    def test_empty_query_matches_nothing_at_default_threshold(self):
        assert rank("", [{"id": "1", "name": "Nike"}]) == []

    def test_empty_query_scores_zero(self):
        ranked = rank("", [{"id": "1", "name": "Nike"}], threshold=0.0)

        assert ranked[0].similarity_score == 0.0

    def test_threshold_zero_keeps_everything(self):
        ranked = rank("Nike", [
            {"id": "1", "name": "Adidas"},
            {"id": "2", "name": "Puma"},
        ], threshold=0.0)

        assert len(ranked) == 2

    def test_threshold_above_one_keeps_nothing(self):
        assert rank("Nike", [{"id": "1", "name": "Nike"}], threshold=1.01) == []

    def test_unknown_audience_is_preserved_as_none(self):
        ranked = rank("Nike", [
            {"id": "1", "name": "Nike"},
            {"id": "2", "name": "Nike", "audience_size": 0},
        ])

        assert ranked[0].audience_size is None
        assert ranked[1].audience_size == 0

    def test_candidate_fields_carried_over(self):
        ranked = rank("Nike", [{
            "id": 6003107902433,
            "name": "Nike",
            "path": ["Interests", "Nike"],
            "description": "Sportswear",
            "topic": "Shopping and fashion",
        }])

        assert ranked[0].id == "6003107902433"
        assert ranked[0].path == ["Interests", "Nike"]
        assert ranked[0].topic == "Shopping and fashion"

    def test_accepts_candidate_models(self):
        ranked = rank("Nike", [Candidate(id="1", name="Nike")])

        assert ranked[0].id == "1"

    def test_default_threshold(self):
        assert DEFAULT_THRESHOLD == 0.3


class TestRankValidation:
    """Invalid input is rejected before any scoring."""

    def test_non_string_query(self):
        with pytest.raises(InvalidArgumentError):
            rank(None, [{"id": "1", "name": "Nike"}])

    @pytest.mark.parametrize("threshold", ["0.3", None, True, float("nan")])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(InvalidArgumentError):
            rank("Nike", [], threshold=threshold)

    def test_candidate_without_name(self):
        with pytest.raises(InvalidCandidateError) as exc_info:
            rank("Nike", [{"id": "1", "name": "Nike"}, {"id": "2"}])

        assert exc_info.value.index == 1

    def test_candidate_with_non_string_name(self):
        with pytest.raises(InvalidCandidateError):
            rank("Nike", [{"id": "1", "name": 42}])

    def test_candidate_not_a_mapping(self):
        with pytest.raises(InvalidCandidateError):
            rank("Nike", ["Nike"])

    def test_negative_audience_rejected(self):
        with pytest.raises(InvalidCandidateError):
            rank("Nike", [{"id": "1", "name": "Nike", "audience_size": -5}])

    def test_invalid_candidate_error_is_invalid_argument(self):
        assert issubclass(InvalidCandidateError, InvalidArgumentError)
        assert issubclass(InvalidArgumentError, ValueError)


class TestInterestMatcherOptions:
    """Optional behaviours configured on the matcher."""

    def test_from_config(self):
        matcher = InterestMatcher.from_config(
            MatchingConfig(similarity_threshold=0.5, context_bonus=True, deduplicate_names=True)
        )

        assert matcher.threshold == 0.5
        assert matcher.context_bonus is True
        assert matcher.deduplicate_names is True

    def test_matcher_threshold_used_by_default(self):
        matcher = InterestMatcher(threshold=0.6)

        assert matcher.rank("Nike", [{"id": "1", "name": "Nike Inc"}]) == []
        assert len(matcher.rank("Nike", [{"id": "1", "name": "Nike Inc"}], threshold=0.5)) == 1

    def test_context_bonus_off_by_default(self):
        ranked = InterestMatcher().rank("Nike", [
            {"id": "1", "name": "Nike Inc", "path": ["Interests", "Nike"]},
        ])

        assert ranked[0].similarity_score == 0.5

    def test_context_bonus_for_query_in_path(self):
        ranked = InterestMatcher(context_bonus=True).rank("Nike", [
            {"id": "1", "name": "Nike Inc", "path": ["Interests", "Nike"]},
        ])

        assert ranked[0].similarity_score == 0.6

    def test_context_bonus_capped_at_one(self):
        ranked = InterestMatcher(context_bonus=True).rank("Nike", [
            {"id": "1", "name": "Nike", "path": ["Nike"], "description": "nike"},
        ])

        assert ranked[0].similarity_score == 1.0

    def test_deduplicate_keeps_largest_audience(self):
        ranked = InterestMatcher(deduplicate_names=True).rank("Nike", [
            {"id": "small", "name": "Nike", "audience_size": 100},
            {"id": "large", "name": "NIKE", "audience_size": 500},
            {"id": "other", "name": "Nike Inc"},
        ])

        assert [c.id for c in ranked] == ["large", "other"]

    def test_deduplicate_off_by_default(self):
        ranked = InterestMatcher().rank("Nike", [
            {"id": "1", "name": "Nike"},
            {"id": "2", "name": "Nike"},
        ])

        assert len(ranked) == 2


class TestContextBonus:
    """Tests for the context_bonus helper."""

    def test_no_bonus_for_empty_query(self):
        assert context_bonus("", Candidate(id="1", name="Nike", path=["Nike"])) == 0.0

    def test_query_in_description(self):
        candidate = Candidate(id="1", name="Swoosh", description="Official Nike fan page")

        assert context_bonus("nike", candidate) == pytest.approx(0.1)

    def test_category_keyword_match(self):
        candidate = Candidate(id="1", name="Stromae", path=["Interests", "Music"])

        assert context_bonus("singer stromae", candidate) == pytest.approx(0.1)

    def test_no_bonus_without_context(self):
        assert context_bonus("nike", Candidate(id="1", name="Adidas")) == 0.0

    def test_query_punctuation_kept_for_path_match(self):
        candidate = Candidate(id="1", name="Swoosh", path=["Interests", "Nike, Inc."])

        assert context_bonus("Nike, Inc.", candidate) == pytest.approx(0.1)
        assert context_bonus("nike inc", candidate) == 0.0

    def test_whitespace_query_gets_no_bonus(self):
        assert context_bonus("   ", Candidate(id="1", name="Nike", path=["  "])) == 0.0
