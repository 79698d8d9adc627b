"""
Core Survey Model Objects

Defines the snapshot data structures the engine reads:
    - Questions (nodes of the flow)
    - Logic rules (skip / show / end edges attached to a question)
    - Score bands, scoring categories and the score configuration

ARCHITECTURAL RULE:
    These objects:
        - Are owned and mutated by the external builder, never by the engine
        - Carry the persisted "core" shape only
        - UI-only decoration (labels, colors, descriptions) lives in the
          *View classes, which embed the core object by composition
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


QUESTION_TYPES = (
    "text", "textarea", "email", "phone", "url", "number",
    "multiple_choice", "checkbox", "dropdown", "image_choice", "yes_no",
    "rating", "nps", "likert", "opinion_scale", "slider", "emoji_rating",
    "matrix", "ranking", "constant_sum", "calculation",
    "date", "time", "datetime",
    "file_upload", "signature", "video", "audio_capture",
    "section", "statement", "legal", "hidden",
)

# Scorable questions of these types need an option -> score mapping.
CHOICE_TYPES = frozenset({"multiple_choice", "dropdown", "yes_no", "checkbox"})

# Numeric answer is the score when no option scores are configured.
SCALE_TYPES = frozenset({"rating", "nps", "likert", "opinion_scale", "slider", "emoji_rating"})

MULTI_SELECT_TYPES = frozenset({"checkbox"})


class RuleAction(Enum):
    """What a logic rule does when its condition holds."""

    SKIP = "skip"
    SHOW = "show"
    END = "end"


@dataclass
class LogicRule:
    """
    A condition/action pair attached to a question.

    Properties:
        id:
            Identifier, unique within the owning question

        condition:
            Raw mini-expression, e.g. 'answer("q1") == "Yes"'.
            Empty string means the rule is unconditional.
            Parse it with surveyflow.conditions.parse_condition.

        action:
            RuleAction.SKIP / SHOW jump to target_question_id,
            RuleAction.END terminates the survey

        target_question_id:
            Required for skip/show, absent for end
    """

    id: str
    condition: str = ""
    action: RuleAction = RuleAction.SKIP
    target_question_id: Optional[str] = None


@dataclass
class LogicRuleView:
    """
    Builder-facing decoration of a LogicRule.

    The engine never reads these fields; it is handed `view.rule`.
    """

    rule: LogicRule
    label: Optional[str] = None
    description: Optional[str] = None

    @property
    def id(self) -> str:
        return self.rule.id

    @property
    def action(self) -> RuleAction:
        return self.rule.action

    @property
    def target_question_id(self) -> Optional[str]:
        return self.rule.target_question_id


@dataclass
class Question:
    """
    A single survey question, the node type of the flow graph.

    Properties:
        id:
            Unique identifier

        order:
            Position in the canonical ordering; must equal the list index

        text:
            Question wording shown to respondents

        type:
            One of QUESTION_TYPES

        logic_rules:
            Ordered rules evaluated after this question is answered

        scorable / score_weight / scoring_category:
            Scoring participation. score_weight must be finite and >= 0

        option_scores:
            option label -> points, required for CHOICE_TYPES when scorable

        reverse:
            Reverse-scored: contribution is (max - selected) * weight

        scale_max:
            Upper bound of a SCALE_TYPES answer when no option scores exist
    """

    id: str
    order: int = 0
    text: str = ""
    type: str = "text"
    required: bool = False
    logic_rules: List[LogicRule] = field(default_factory=list)
    scorable: bool = False
    score_weight: float = 1.0
    scoring_category: Optional[str] = None
    option_scores: Dict[str, float] = field(default_factory=dict)
    options: List[str] = field(default_factory=list)
    reverse: bool = False
    scale_max: Optional[float] = None

    @property
    def weight(self) -> float:
        """Effective weight; a missing weight counts as 1."""
        return 1.0 if self.score_weight is None else self.score_weight


@dataclass
class ScoreBand:
    """
    A labeled [min, max] interval over 0-100 (both ends inclusive).

    Taken together, the bands of a ScoreConfig must not overlap and must
    cover every integer in [0, 100]. That is checked, not assumed.
    """

    id: str
    min: int
    max: int
    label: str = ""


@dataclass
class ScoreBandView:
    """Results-screen decoration of a ScoreBand."""

    band: ScoreBand
    color: Optional[str] = None
    description: Optional[str] = None

    @property
    def id(self) -> str:
        return self.band.id

    @property
    def min(self) -> int:
        return self.band.min

    @property
    def max(self) -> int:
        return self.band.max

    @property
    def label(self) -> str:
        return self.band.label


@dataclass
class ScoringCategory:
    """
    A named group of questions whose contributions form one sub-score.

    bands: custom score bands for this category only; empty means the
    category is classified with the config's global score_ranges.
    """

    id: str
    name: str = ""
    description: Optional[str] = None
    bands: List[ScoreBand] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class ScoreConfig:
    """
    Scoring configuration of a survey.

    Properties:
        enabled: Scoring switched on
        categories: Declared scoring categories
        score_ranges: Global score bands used to classify 0-100 scores;
            a category with its own bands uses those instead
    """

    enabled: bool = False
    categories: List[ScoringCategory] = field(default_factory=list)
    score_ranges: List[ScoreBand] = field(default_factory=list)

    def get_category(self, category_id: str) -> Optional[ScoringCategory]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    @property
    def category_ids(self) -> List[str]:
        return [c.id for c in self.categories]

    def bands_for(self, category_id: str) -> List[ScoreBand]:
        """Bands that classify a category: its custom set, else the global ranges."""
        category = self.get_category(category_id)
        if category is not None and category.bands:
            return list(category.bands)
        return list(self.score_ranges or [])
