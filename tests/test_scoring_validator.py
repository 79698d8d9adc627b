"""
Tests for the scoring configuration validator.

Tests cover:
    - Band gaps, overlaps and bounds
    - Category usage and references
    - Option scores for choice questions
    - Weight checks
    - Normalization of score configs and scorable questions
"""

import pytest
from surveyflow import issues as codes
from surveyflow.examples import canonical_score_bands
from surveyflow.issues import Domain, Severity
from surveyflow.model import Question, ScoreBand, ScoreConfig, ScoringCategory
from surveyflow.scoring_validator import (
    check_band_coverage,
    check_band_overlaps,
    check_band_ranges,
    check_weight_distribution,
    clamp_score_weight,
    is_valid_weight,
    normalize_score_config,
    normalize_scoring_question,
    sanitize_bands,
    sanitize_option_scores,
    validate_score_config,
)
from surveyflow.settings import EngineSettings


def of_code(issues, code):
    return [i for i in issues if i.code == code]


def scorable(qid, weight=1.0, category="eng", type="rating"):
    return Question(id=qid, text=f"Question {qid}", type=type, scorable=True,
                    score_weight=weight, scoring_category=category)


def config(bands=None, categories=None):
    return ScoreConfig(
        enabled=True,
        categories=categories if categories is not None else [ScoringCategory("eng", "Engagement")],
        score_ranges=bands if bands is not None else canonical_score_bands(),
    )


class TestBands:
    """Band coverage, overlap and bounds."""

    @pytest.mark.parametrize("bands", [
        [ScoreBand("all", 0, 100)],
        [ScoreBand("low", 0, 49), ScoreBand("high", 50, 100)],
        canonical_score_bands(),
    ])
    def test_tiling_bands_have_no_gaps_or_overlaps(self, bands):
        """Sorted, disjoint bands spanning 0-100 are clean."""
        issues = check_band_coverage(bands) + check_band_overlaps(bands)
        assert issues == []

    def test_unsorted_bands_are_sorted_first(self):
        """Declaration order does not matter for coverage."""
        bands = [ScoreBand("high", 50, 100), ScoreBand("low", 0, 49)]
        assert check_band_coverage(bands) == []

    def test_gaps_reported_individually(self):
        """Each uncovered stretch is its own issue."""
        bands = [ScoreBand("a", 0, 40), ScoreBand("b", 50, 90)]
        gaps = check_band_coverage(bands)
        assert [(g.details["gapStart"], g.details["gapEnd"]) for g in gaps] == [(41, 49), (91, 100)]
        assert all(g.severity is Severity.ERROR for g in gaps)

    def test_leading_gap(self):
        """Coverage starts at 0."""
        gaps = check_band_coverage([ScoreBand("a", 10, 100)])
        assert gaps[0].message == "Score range 0-9 has no assigned band"

    def test_overlap(self):
        """Overlapping pairs report the shared range and both bands."""
        bands = [ScoreBand("a", 0, 50, "A"), ScoreBand("b", 40, 100, "B")]
        overlaps = check_band_overlaps(bands)
        assert len(overlaps) == 1
        assert overlaps[0].details["overlapRange"] == {"start": 40, "end": 50}
        assert overlaps[0].details["band1"]["id"] == "a"
        assert overlaps[0].details["band2"]["id"] == "b"

    def test_touching_bounds_overlap(self):
        """Inclusive bounds: 0-50 and 50-100 share 50."""
        overlaps = check_band_overlaps([ScoreBand("a", 0, 50), ScoreBand("b", 50, 100)])
        assert overlaps[0].details["overlapRange"] == {"start": 50, "end": 50}

    def test_band_ranges(self):
        """min >= max and min < 0 are errors; max > 100 is a warning."""
        issues = check_band_ranges([
            ScoreBand("flat", 10, 10),
            ScoreBand("neg", -5, 20),
            ScoreBand("big", 90, 120),
        ])
        assert [(i.code, i.severity, i.band_id) for i in issues] == [
            (codes.INVALID_BAND_RANGE, Severity.ERROR, "flat"),
            (codes.BAND_OUT_OF_RANGE, Severity.ERROR, "neg"),
            (codes.BAND_OUT_OF_RANGE, Severity.WARNING, "big"),
        ]

    def test_no_bands_defined(self):
        """No bands: a single warning and nothing else about bands."""
        issues = validate_score_config([scorable("q1")], config(bands=[]))
        assert of_code(issues, codes.NO_BANDS_DEFINED)[0].severity is Severity.WARNING
        assert of_code(issues, codes.BAND_GAP) == []

    def test_category_bands_checked(self):
        """A category's own bands are checked and tagged with its id."""
        categories = [ScoringCategory("eng", "Engagement", bands=[ScoreBand("low", 0, 49), ScoreBand("high", 60, 100)])]
        issues = validate_score_config([scorable("q1")], config(categories=categories))
        gaps = of_code(issues, codes.BAND_GAP)
        assert len(gaps) == 1
        assert gaps[0].category_id == "eng"
        assert gaps[0].details == {"gapStart": 50, "gapEnd": 59}


class TestCategories:
    """Category usage and references."""

    def test_unused_category(self):
        """A declared category nobody uses is one UNUSED_CATEGORY warning."""
        questions = [Question(id="q1", text="Free text")]
        issues = validate_score_config(questions, config())
        unused = of_code(issues, codes.UNUSED_CATEGORY)
        assert len(unused) == 1
        assert unused[0].category_id == "eng"
        assert unused[0].severity is Severity.WARNING

    def test_non_scorable_reference_does_not_count(self):
        """Only scorable questions count as using a category."""
        questions = [Question(id="q1", text="Q", scoring_category="eng")]
        assert of_code(validate_score_config(questions, config()), codes.UNUSED_CATEGORY)

    def test_scorable_without_category(self):
        """Scorable questions need a category."""
        issues = validate_score_config([scorable("q1", category=None)], config())
        assert of_code(issues, codes.SCORABLE_NO_CATEGORY)[0].question_id == "q1"

    def test_invalid_category_ref(self):
        """References to undeclared categories are errors."""
        issues = validate_score_config([scorable("q1"), scorable("q2", category="nope")], config())
        found = of_code(issues, codes.INVALID_CATEGORY_REF)
        assert len(found) == 1
        assert found[0].severity is Severity.ERROR
        assert found[0].category_id == "nope"

    def test_missing_option_scores(self):
        """Scorable choice questions need option scores."""
        questions = [scorable("q1", type="multiple_choice"), scorable("q2", type="rating")]
        found = of_code(validate_score_config(questions, config()), codes.MISSING_OPTION_SCORES)
        assert [i.question_id for i in found] == ["q1"]

    def test_disabled_scoring_skips_everything(self):
        """Nothing is checked when scoring is off."""
        off = ScoreConfig(enabled=False, categories=[ScoringCategory("eng")], score_ranges=[])
        assert validate_score_config([scorable("q1", category=None)], off) == []
        assert validate_score_config([scorable("q1")], None) == []

    def test_all_issues_are_scoring_domain(self):
        """Findings belong to the scoring domain."""
        issues = validate_score_config([scorable("q1", category="nope")], config(bands=[]))
        assert issues
        assert all(i.domain is Domain.SCORING for i in issues)


class TestWeights:
    """Weight validity and distribution."""

    def test_weight_imbalance(self):
        """Weights [50, 5, 5] flag the heavy question at about 83%."""
        questions = [scorable("heavy", 50), scorable("a", 5), scorable("b", 5)]
        found = of_code(check_weight_distribution(questions), codes.WEIGHT_IMBALANCE)

        assert len(found) == 1
        assert found[0].question_id == "heavy"
        assert found[0].severity is Severity.WARNING
        assert found[0].details["percentage"] == pytest.approx(83.33, abs=0.01)
        assert "83%" in found[0].message

    def test_extreme_variance(self):
        """max > 5 x min is advisory."""
        questions = [scorable("heavy", 50), scorable("a", 5), scorable("b", 5)]
        found = of_code(check_weight_distribution(questions), codes.EXTREME_WEIGHT_VARIANCE)
        assert len(found) == 1
        assert found[0].severity is Severity.INFO

    def test_needs_three_scorable_questions(self):
        """Two questions say nothing about balance."""
        assert check_weight_distribution([scorable("a", 50), scorable("b", 1)]) == []

    def test_balanced_weights(self):
        """Even weights are clean."""
        questions = [scorable("a"), scorable("b"), scorable("c")]
        assert check_weight_distribution(questions) == []

    def test_zero_total_weight(self):
        """All-zero weights do not divide by zero."""
        questions = [scorable("a", 0), scorable("b", 0), scorable("c", 0)]
        assert check_weight_distribution(questions) == []

    def test_thresholds_from_settings(self):
        """The dominance threshold is configurable."""
        questions = [scorable("a", 2), scorable("b", 1), scorable("c", 1)]
        settings = EngineSettings(weight_dominance_percent=40)
        found = of_code(check_weight_distribution(questions, settings), codes.WEIGHT_IMBALANCE)
        assert [i.question_id for i in found] == ["a"]

    @pytest.mark.parametrize("weight,valid", [
        (None, True),
        (0, True),
        (2.5, True),
        (-1, False),
        (float("nan"), False),
        (float("inf"), False),
        (True, False),
        ("3", False),
    ])
    def test_is_valid_weight(self, weight, valid):
        """Weights must be finite numbers >= 0."""
        assert is_valid_weight(weight) is valid

    def test_invalid_weight_is_error(self):
        """A negative weight blocks publish."""
        issues = validate_score_config([scorable("q1", -2)], config())
        found = of_code(issues, codes.INVALID_SCORE_WEIGHT)
        assert found[0].severity is Severity.ERROR


class TestNormalization:
    """Cleaned copies of score configs and scorable questions."""

    def test_sanitize_bands(self):
        """Duplicates go, inverted bounds swap, overlaps are trimmed."""
        bands = [
            ScoreBand("high", 100, 60),
            ScoreBand("low", 0, 50),
            ScoreBand("low", 0, 10),
            ScoreBand("", 0, 100),
            ScoreBand("mid", 40, 59),
            ScoreBand("inside", 45, 50),
        ]
        assert sanitize_bands(bands) == [
            ScoreBand("low", 0, 50),
            ScoreBand("mid", 51, 59),
            ScoreBand("high", 60, 100),
        ]

    def test_sanitized_bands_pass_band_checks(self):
        """Repaired bands no longer overlap."""
        bands = sanitize_bands([ScoreBand("a", 0, 60), ScoreBand("b", 50, 100)])
        assert check_band_overlaps(bands) == []
        assert check_band_coverage(bands) == []

    def test_normalize_score_config(self):
        """Categories are deduplicated and every band list is sanitized."""
        original = ScoreConfig(
            enabled=True,
            categories=[
                ScoringCategory("eng", "Engagement", bands=[ScoreBand("x", 80, 20)]),
                ScoringCategory("eng", "Duplicate"),
                ScoringCategory("", "No id"),
            ],
            score_ranges=[ScoreBand("a", 0, 100), ScoreBand("a", 0, 50)],
        )
        normalized = normalize_score_config(original)

        assert [c.name for c in normalized.categories] == ["Engagement"]
        assert normalized.categories[0].bands == [ScoreBand("x", 20, 80)]
        assert normalized.score_ranges == [ScoreBand("a", 0, 100)]
        assert original.categories[0].bands == [ScoreBand("x", 80, 20)]
        assert len(original.categories) == 3

    def test_normalize_none(self):
        """No config stays no config."""
        assert normalize_score_config(None) is None

    @pytest.mark.parametrize("weight,expected", [
        (2.5, 2.5), (-3, 0), (5000, 1000), (float("nan"), None), (None, None), ("2", None), (True, None),
    ])
    def test_clamp_score_weight(self, weight, expected):
        """Weights are clamped into range; non-numbers give None."""
        assert clamp_score_weight(weight) == expected

    def test_sanitize_option_scores(self):
        """Non-finite or non-numeric scores become 0."""
        scores = {"Good": 4, "Bad": float("inf"), "Odd": "3", "Meh": 1.5}
        assert sanitize_option_scores(scores) == {"Good": 4, "Bad": 0, "Odd": 0, "Meh": 1.5}

    def test_normalize_scoring_question(self):
        """The copy has a usable weight and clean option scores; the original is untouched."""
        question = Question(id="q1", type="multiple_choice", scorable=True, score_weight=float("inf"),
                            option_scores={"Yes": 5, "No": float("nan")})
        normalized = normalize_scoring_question(question)
        assert normalized.score_weight == 1.0
        assert normalized.option_scores == {"Yes": 5, "No": 0}
        assert is_valid_weight(normalized.score_weight)
        assert question.score_weight == float("inf")
