"""
Tests for the survey model objects.

These tests verify:
    - Defaults of the core objects
    - View objects delegate to the core object they embed
    - Score config lookups
"""

from surveyflow.model import (
    CHOICE_TYPES,
    QUESTION_TYPES,
    SCALE_TYPES,
    LogicRule,
    LogicRuleView,
    Question,
    RuleAction,
    ScoreBand,
    ScoreBandView,
    ScoreConfig,
    ScoringCategory,
)


class TestQuestion:
    """Test Question objects."""

    def test_defaults(self):
        """A bare question is a non-scorable text question."""
        q = Question(id="q1")
        assert q.type == "text"
        assert q.logic_rules == []
        assert q.scorable is False
        assert q.score_weight == 1.0
        assert q.reverse is False

    def test_missing_weight_counts_as_one(self):
        """weight treats None as 1."""
        assert Question(id="q1", score_weight=None).weight == 1.0
        assert Question(id="q1", score_weight=3).weight == 3

    def test_question_types(self):
        """All 32 product question types are known."""
        assert len(QUESTION_TYPES) == 32
        assert len(set(QUESTION_TYPES)) == 32
        assert CHOICE_TYPES <= set(QUESTION_TYPES)
        assert SCALE_TYPES <= set(QUESTION_TYPES)


class TestLogicRule:
    """Test LogicRule and its view."""

    def test_rule_defaults(self):
        """Rules default to an unconditional skip."""
        rule = LogicRule(id="r1")
        assert rule.condition == ""
        assert rule.action is RuleAction.SKIP
        assert rule.target_question_id is None

    def test_view_delegates(self):
        """The view exposes the core fields of the embedded rule."""
        rule = LogicRule("r1", 'answer("q1") == "No"', RuleAction.END)
        view = LogicRuleView(rule, label="Exit", description="Ends the survey")
        assert view.id == "r1"
        assert view.action is RuleAction.END
        assert view.target_question_id is None
        assert view.rule is rule


class TestScoring:
    """Test bands, categories and the score config."""

    def test_band_view_delegates(self):
        """The band view exposes min/max/label of its core band."""
        view = ScoreBandView(ScoreBand("low", 0, 49, "Low"), color="#f00")
        assert (view.id, view.min, view.max, view.label) == ("low", 0, 49, "Low")
        assert view.color == "#f00"

    def test_category_display_name(self):
        """Categories fall back to their id when unnamed."""
        assert ScoringCategory(id="eng").display_name == "eng"
        assert ScoringCategory(id="eng", name="Engagement").display_name == "Engagement"

    def test_config_lookup(self):
        """get_category and category_ids follow declaration order."""
        config = ScoreConfig(
            enabled=True,
            categories=[ScoringCategory("eng", "Engagement"), ScoringCategory("wb", "Wellbeing")],
        )
        assert config.category_ids == ["eng", "wb"]
        assert config.get_category("wb").name == "Wellbeing"
        assert config.get_category("missing") is None

    def test_config_defaults(self):
        """Scoring is off by default."""
        config = ScoreConfig()
        assert config.enabled is False
        assert config.categories == []
        assert config.score_ranges == []
