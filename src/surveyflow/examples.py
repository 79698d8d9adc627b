"""
Example engagement survey used by the demo script and the tests.

Builds a nine-question employee engagement pulse with two scoring
categories, the canonical five-band index scheme, forward-only branch
logic (an early exit on declined consent, one skip for non-managers)
and one reverse-scored question.
"""
from typing import Dict, List, Tuple

from surveyflow.model import (
    LogicRule,
    Question,
    RuleAction,
    ScoreBand,
    ScoreConfig,
    ScoringCategory,
)
from surveyflow.scoring import INDEX_BANDS


def canonical_score_bands() -> List[ScoreBand]:
    """Core copies of the five index bands; they tile 0-100 exactly."""
    return [ScoreBand(b.id, b.min, b.max, b.label) for b in INDEX_BANDS]


def build_example_engagement_survey() -> Tuple[List[Question], ScoreConfig]:
    questions = [
        Question(
            id="consent",
            text="Do you agree to take part in this survey?",
            type="yes_no",
            required=True,
            options=["Yes", "No"],
            logic_rules=[
                LogicRule(id="r_consent_end", condition='answer("consent") == "No"', action=RuleAction.END),
            ],
        ),
        Question(
            id="team",
            text="Which team are you in?",
            type="multiple_choice",
            options=["Engineering", "Sales", "Operations", "Other"],
        ),
        Question(
            id="motivation",
            text="I feel motivated by the work I do.",
            type="likert",
            scorable=True,
            scoring_category="engagement",
            scale_max=5,
        ),
        Question(
            id="recommend",
            text="How likely are you to recommend this company as a place to work?",
            type="nps",
            scorable=True,
            score_weight=2.0,
            scoring_category="engagement",
        ),
        Question(
            id="manager",
            text="Do you manage other people?",
            type="yes_no",
            options=["Yes", "No"],
            logic_rules=[
                LogicRule(
                    id="r_skip_people",
                    condition='answer("manager") == "No"',
                    action=RuleAction.SKIP,
                    target_question_id="workload",
                ),
            ],
        ),
        Question(
            id="team_support",
            text="I have what I need to support my team.",
            type="rating",
            scorable=True,
            scoring_category="wellbeing",
            scale_max=5,
        ),
        Question(
            id="workload",
            text="How would you describe your workload?",
            type="multiple_choice",
            scorable=True,
            scoring_category="wellbeing",
            options=["Manageable", "Sometimes heavy", "Unsustainable"],
            option_scores={"Manageable": 5, "Sometimes heavy": 3, "Unsustainable": 0},
        ),
        Question(
            id="stress",
            text="How often do you feel stressed at work?",
            type="rating",
            scorable=True,
            scoring_category="wellbeing",
            reverse=True,
            scale_max=5,
        ),
        Question(
            id="comments",
            text="Anything else you would like to share?",
            type="textarea",
        ),
    ]
    for idx, q in enumerate(questions):
        q.order = idx

    score_config = ScoreConfig(
        enabled=True,
        categories=[
            ScoringCategory(id="engagement", name="Engagement"),
            ScoringCategory(id="wellbeing", name="Wellbeing"),
        ],
        score_ranges=canonical_score_bands(),
    )
    return questions, score_config


def example_answers() -> Dict[str, object]:
    """One respondent's answers to the example survey."""
    return {
        "consent": "Yes",
        "team": "Engineering",
        "motivation": 4,
        "recommend": 8,
        "manager": "Yes",
        "team_support": 4,
        "workload": "Sometimes heavy",
        "stress": 2,
        "comments": "More focus time please.",
    }
