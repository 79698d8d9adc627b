"""
Tests for the survey validation aggregator.

Tests cover:
    - Survey-shape checks
    - Aggregation of logic and scoring findings
    - Publish eligibility and summaries
    - Determinism
"""

from surveyflow import issues as codes
from surveyflow import validate_survey
from surveyflow.examples import build_example_engagement_survey
from surveyflow.issues import Domain, Severity
from surveyflow.model import LogicRule, Question, RuleAction, ScoreConfig, ScoringCategory
from surveyflow.settings import EngineSettings
from surveyflow.validation import format_validation_message, validate_general


def make_questions(*ids):
    return [Question(id=qid, order=idx, text=f"Question {qid}") for idx, qid in enumerate(ids)]


class TestGeneralChecks:
    """Survey-shape checks."""

    def test_empty_survey(self):
        """An empty survey is a complete, invalid result."""
        result = validate_survey([])
        assert result.codes() == [codes.NO_QUESTIONS]
        assert result.is_valid is False
        assert result.can_publish is False
        assert result.logic == []
        assert set(result.summary) == {"logic", "scoring", "general", "total"}

    def test_none_questions(self):
        """None is treated as no questions."""
        assert validate_survey(None).codes() == [codes.NO_QUESTIONS]

    def test_too_many_questions(self):
        """The recommended maximum is a warning."""
        questions = make_questions("a", "b", "c")
        issues = validate_general(questions, EngineSettings(max_questions=2))
        assert [i.code for i in issues] == [codes.TOO_MANY_QUESTIONS]
        assert issues[0].severity is Severity.WARNING
        assert issues[0].details == {"count": 3, "max": 2}

    def test_default_max_is_200(self):
        """200 questions are fine, 201 are not."""
        assert validate_general(make_questions(*[f"q{i}" for i in range(200)])) == []
        issues = validate_general(make_questions(*[f"q{i}" for i in range(201)]))
        assert [i.code for i in issues] == [codes.TOO_MANY_QUESTIONS]

    def test_duplicate_ids(self):
        """Duplicate ids are one error listing each duplicate once."""
        questions = [Question("a", 0, "A"), Question("b", 1, "B"), Question("a", 2, "A again"),
                     Question("b", 3, "B again"), Question("a", 4, "A thrice")]
        found = [i for i in validate_general(questions) if i.code == codes.DUPLICATE_QUESTION_IDS]
        assert len(found) == 1
        assert found[0].details["duplicates"] == ["a", "b"]
        assert found[0].severity is Severity.ERROR

    def test_empty_text(self):
        """Blank question text is an error."""
        questions = [Question("a", 0, "A"), Question("b", 1, "   ")]
        found = validate_general(questions)
        assert [(i.code, i.question_id) for i in found] == [(codes.EMPTY_QUESTION_TEXT, "b")]

    def test_invalid_type(self):
        """Unknown question types are errors."""
        found = validate_general([Question("a", 0, "A", type="hologram")])
        assert [i.code for i in found] == [codes.INVALID_QUESTION_TYPE]

    def test_order_mismatch(self):
        """order must equal list position."""
        found = validate_general([Question("a", 0, "A"), Question("b", 5, "B")])
        assert [i.code for i in found] == [codes.ORDER_MISMATCH]
        assert found[0].details == {"order": 5, "expected": 1}


class TestValidateSurvey:
    """Test the aggregated result."""

    def test_example_survey_is_clean(self):
        """The example survey has no issues at all."""
        questions, score_config = build_example_engagement_survey()
        result = validate_survey(questions, score_config)
        assert result.issues == []
        assert result.is_valid is True
        assert result.can_publish is True
        assert format_validation_message(result) == "No issues found"

    def test_aggregation_order_and_split(self):
        """Issues are logic, then scoring, then general."""
        questions = make_questions("q1", "q2", "q3")
        questions[0].logic_rules = [LogicRule("r1", "", RuleAction.SKIP, "ghost")]
        questions[2].text = ""
        score_config = ScoreConfig(enabled=True, categories=[ScoringCategory("eng", "Engagement")])

        result = validate_survey(questions, score_config)

        assert result.codes() == [
            codes.MISSING_TARGET,
            codes.NO_BANDS_DEFINED,
            codes.UNUSED_CATEGORY,
            codes.EMPTY_QUESTION_TEXT,
        ]
        assert [i.domain for i in result.issues] == [Domain.LOGIC, Domain.SCORING, Domain.SCORING, Domain.GENERAL]
        assert [i.code for i in result.errors] == [codes.MISSING_TARGET, codes.EMPTY_QUESTION_TEXT]
        assert [i.code for i in result.warnings] == [codes.NO_BANDS_DEFINED, codes.UNUSED_CATEGORY]
        assert [i.code for i in result.logic] == [codes.MISSING_TARGET]
        assert result.summary["scoring"].warning_count == 2
        assert result.summary["total"].error_count == 2
        assert result.is_valid is False
        assert format_validation_message(result) == "2 errors, 2 warnings"

    def test_warnings_do_not_block_publish(self):
        """Only errors decide publish eligibility."""
        questions = make_questions("q1", "q2")
        questions[1].logic_rules = [LogicRule("r1", 'answer("q2") == 1', RuleAction.SKIP, "q1")]
        result = validate_survey(questions)
        assert result.codes() == [codes.BACKWARDS_JUMP]
        assert result.can_publish is True
        assert format_validation_message(result) == "1 warning"

    def test_issues_for_question(self):
        """Issues can be looked up per question."""
        questions = make_questions("q1", "q2")
        questions[1].text = ""
        result = validate_survey(questions)
        assert [i.code for i in result.issues_for_question("q2")] == [codes.EMPTY_QUESTION_TEXT]
        assert result.issues_for_question("q1") == []

    def test_deterministic(self):
        """Validating the same input twice gives identical issue lists."""
        questions = make_questions("q1", "q2", "q3", "q4")
        questions[0].logic_rules = [
            LogicRule("r1", "", RuleAction.SKIP, "q3"),
            LogicRule("r2", "", RuleAction.SKIP, "ghost"),
        ]
        questions[3].logic_rules = [LogicRule("r3", 'answer("q4") == 1', RuleAction.SKIP, "q1")]
        score_config = ScoreConfig(enabled=True, categories=[ScoringCategory("eng")])

        first = validate_survey(questions, score_config)
        second = validate_survey(questions, score_config)

        assert first.issues == second.issues
        assert first.codes() == second.codes()
