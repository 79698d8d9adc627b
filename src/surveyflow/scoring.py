"""
Score computation and tracing.

Given a respondent's answers, computes an itemized score trace:
    - one contribution record per answered scorable question
    - one breakdown per scoring category (raw, max, normalized, band)
    - an overall score produced by a configurable rollup policy

Problems found on the way (no bands, unknown categories, a score no band
covers) are engine-level errors: they are listed in ScoreTrace.errors and
sent to the diagnostic observer. Nothing is raised for bad content and
nothing is silently dropped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from surveyflow import diagnostics
from surveyflow.diagnostics import DiagnosticEvent, Observer, resolve_observer
from surveyflow.model import (
    MULTI_SELECT_TYPES,
    SCALE_TYPES,
    Question,
    ScoreBand,
    ScoreBandView,
    ScoreConfig,
)
from surveyflow.rollup import RollupPolicy, get_rollup_policy, normalize_score, clamp_score
from surveyflow.scoring_validator import is_valid_weight
from surveyflow.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)

AnswerValue = Union[str, int, float, bool, List[str], None]

DEFAULT_SCALE_MAX = 5
NPS_SCALE_MAX = 10

# Canonical five-band index scheme used for display of overall scores.
INDEX_BANDS: Tuple[ScoreBandView, ...] = (
    ScoreBandView(ScoreBand("critical", 0, 39, "Critical"), color="#ef4444"),
    ScoreBandView(ScoreBand("needs-improvement", 40, 54, "Needs Improvement"), color="#f97316"),
    ScoreBandView(ScoreBand("developing", 55, 69, "Developing"), color="#f59e0b"),
    ScoreBandView(ScoreBand("effective", 70, 84, "Effective"), color="#84cc16"),
    ScoreBandView(ScoreBand("highly-effective", 85, 100, "Highly Effective"), color="#22c55e"),
)


@dataclass
class QuestionContribution:
    question_id: str
    question_text: str
    question_type: str
    category_id: str
    category_name: str
    raw_answer: AnswerValue
    option_score_used: Optional[float]
    max_points: float
    weight: float
    reverse: bool
    contribution: float
    max_contribution: float
    normalized_contribution: int


@dataclass
class CategoryBreakdown:
    category_id: str
    category_name: str
    raw_score: float = 0.0
    max_possible_score: float = 0.0
    normalized_score: int = 0
    band: Optional[ScoreBand] = None
    question_count: int = 0


@dataclass
class OverallScore:
    score: int
    matched_rule: Optional[ScoreBand] = None
    index_band: Optional[ScoreBandView] = None


@dataclass
class TraceMeta:
    scoring_enabled: bool
    question_count: int
    answered_count: int = 0
    rollup_policy: Optional[str] = None


@dataclass
class ScoreTrace:
    meta: TraceMeta
    config: Optional[ScoreConfig] = None
    questions: List[QuestionContribution] = field(default_factory=list)
    categories: List[CategoryBreakdown] = field(default_factory=list)
    overall: Optional[OverallScore] = None
    errors: List[str] = field(default_factory=list)

    def get_category(self, category_id: str) -> Optional[CategoryBreakdown]:
        for breakdown in self.categories:
            if breakdown.category_id == category_id:
                return breakdown
        return None


# =========================================================================
# PER-QUESTION SCORING
# =========================================================================


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _option_values(question: Question) -> List[float]:
    values = []
    for value in (question.option_scores or {}).values():
        number = _as_number(value)
        if number is not None:
            values.append(number)
    return values


def max_option_score(question: Question) -> float:
    """
    Highest score a single answer to this question can earn (before weight).

    Multi-select questions can earn every positive option at once.
    Scale questions without option scores top out at scale_max.
    """
    if question.option_scores:
        values = _option_values(question)
        if not values:
            return 0.0
        if question.type in MULTI_SELECT_TYPES:
            return sum(v for v in values if v > 0)
        return max(values)
    if question.type in SCALE_TYPES:
        if question.scale_max is not None:
            return float(question.scale_max)
        return float(NPS_SCALE_MAX if question.type == "nps" else DEFAULT_SCALE_MAX)
    return 0.0


def score_answer(question: Question, answer: AnswerValue) -> Tuple[float, Optional[float]]:
    """
    Resolve the score of an answer (before weight and reversal).

    Returns:
        (score, option_score_used). option_score_used is None when no
        configured option score was involved; unmapped options score 0.
    """
    option_scores = question.option_scores or {}

    if question.type in MULTI_SELECT_TYPES:
        selected = answer if isinstance(answer, (list, tuple)) else [answer]
        total = 0.0
        matched = False
        for option in selected:
            number = _as_number(option_scores.get(str(option)))
            if number is not None:
                total += number
                matched = True
        return total, (total if matched else None)

    if isinstance(answer, (list, tuple)):
        answer = answer[0] if answer else None
    if answer is None:
        return 0.0, None

    if option_scores:
        number = _as_number(option_scores.get(str(answer)))
        if number is None:
            return 0.0, None
        return number, number

    if question.type in SCALE_TYPES:
        number = _as_number(answer)
        return (number if number is not None else 0.0), None

    return 0.0, None


def resolve_band(score: float, bands: Sequence[ScoreBand]) -> Optional[ScoreBand]:
    """First band with min <= score <= max, or None."""
    for band in bands or []:
        if band.min <= score <= band.max:
            return band
    return None


# =========================================================================
# TRACE
# =========================================================================


class _TraceBuilder:
    def __init__(self, trace: ScoreTrace, observer: Observer):
        self.trace = trace
        self.observer = observer

    def error(self, code: str, message: str, *, level: int = logging.WARNING, **details: Any) -> None:
        self.trace.errors.append(message)
        self.observer(DiagnosticEvent(code=code, message=message, source="scoring", details=details, level=level))


def compute_score_trace(
    questions: List[Question],
    score_config: Optional[ScoreConfig],
    answers: Mapping[str, AnswerValue],
    *,
    rollup: Union[str, RollupPolicy, None] = None,
    observer: Optional[Observer] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> ScoreTrace:
    """
    Build the score trace for one respondent.

    Args:
        questions: Ordered survey questions
        score_config: Scoring configuration (None means scoring disabled)
        answers: question id -> answer value; missing or None is unanswered
        rollup: Policy name or callable; defaults to settings.overall_rollup
        observer: Receives a DiagnosticEvent per engine error
        settings: Engine settings

    Returns:
        ScoreTrace
    """
    if rollup is None:
        rollup = settings.overall_rollup
    policy_name = rollup if isinstance(rollup, str) else getattr(rollup, "__name__", "custom")
    policy = get_rollup_policy(rollup) if isinstance(rollup, str) else rollup

    enabled = bool(score_config and score_config.enabled)
    trace = ScoreTrace(meta=TraceMeta(scoring_enabled=enabled, question_count=len(questions)))
    builder = _TraceBuilder(trace, resolve_observer(observer))

    if not enabled:
        builder.error(diagnostics.SCORING_CONFIG_PROBLEM, "Scoring is not enabled for this survey", level=logging.INFO)
        return trace

    trace.config = score_config
    trace.meta.rollup_policy = policy_name
    bands = list(score_config.score_ranges or [])

    if not score_config.categories:
        builder.error(diagnostics.SCORING_CONFIG_PROBLEM, "No scoring categories defined")
    if not bands:
        builder.error(diagnostics.SCORING_CONFIG_PROBLEM, "No score ranges (bands) defined")

    breakdowns: Dict[str, CategoryBreakdown] = {}
    for category in score_config.categories:
        if category.id not in breakdowns:
            breakdowns[category.id] = CategoryBreakdown(category.id, category.display_name)

    for q in questions:
        if q.scoring_category and not q.scorable:
            builder.error(
                diagnostics.QUESTION_SKIPPED,
                f"Question {q.id} has scoringCategory but scorable=false. Skipping.",
                question_id=q.id,
            )
            continue
        if not q.scorable:
            continue
        if not q.scoring_category:
            builder.error(
                diagnostics.QUESTION_SKIPPED,
                f"Question {q.id} is scorable but missing scoringCategory. Skipping.",
                question_id=q.id,
            )
            continue
        breakdown = breakdowns.get(q.scoring_category)
        if breakdown is None:
            builder.error(
                diagnostics.QUESTION_SKIPPED,
                f"Question {q.id} has unknown category: {q.scoring_category}",
                question_id=q.id,
                category_id=q.scoring_category,
            )
            continue
        if not is_valid_weight(q.score_weight):
            builder.error(
                diagnostics.QUESTION_SKIPPED,
                f"Question {q.id} has invalid weight {q.score_weight!r}. Skipping.",
                question_id=q.id,
            )
            continue

        answer = answers.get(q.id)
        if answer is None:
            continue

        weight = q.weight
        max_points = max_option_score(q)
        selected, option_score_used = score_answer(q, answer)
        effective = max_points - selected if q.reverse else selected
        contribution = effective * weight
        max_contribution = max_points * weight

        breakdown.raw_score += contribution
        breakdown.max_possible_score += max_contribution
        breakdown.question_count += 1

        trace.questions.append(QuestionContribution(
            question_id=q.id,
            question_text=q.text or "Untitled Question",
            question_type=q.type,
            category_id=breakdown.category_id,
            category_name=breakdown.category_name,
            raw_answer=answer,
            option_score_used=option_score_used,
            max_points=max_points,
            weight=weight,
            reverse=q.reverse,
            contribution=contribution,
            max_contribution=max_contribution,
            normalized_contribution=clamp_score(effective / max_points * 100) if max_points > 0 else 0,
        ))

    for breakdown in breakdowns.values():
        breakdown.normalized_score = normalize_score(breakdown.raw_score, breakdown.max_possible_score)
        category_bands = score_config.bands_for(breakdown.category_id)
        breakdown.band = resolve_band(breakdown.normalized_score, category_bands)
        if breakdown.band is None and category_bands:
            builder.error(
                diagnostics.NO_BAND_MATCH,
                f"No score band matches score {breakdown.normalized_score} "
                f"for category {breakdown.category_id}",
                category_id=breakdown.category_id,
                score=breakdown.normalized_score,
            )
        trace.categories.append(breakdown)

    trace.meta.answered_count = len(trace.questions)

    overall_score = policy(trace.categories)
    if overall_score is not None:
        matched = resolve_band(overall_score, bands)
        index_band = next((b for b in INDEX_BANDS if b.min <= overall_score <= b.max), None)
        trace.overall = OverallScore(score=overall_score, matched_rule=matched, index_band=index_band)
        if matched is None and bands:
            builder.error(
                diagnostics.NO_BAND_MATCH,
                f"No score band matches overall score {overall_score}",
                score=overall_score,
            )

    logger.debug(
        "Score trace: %d answered, %d categories, overall=%s, %d errors",
        trace.meta.answered_count, len(trace.categories),
        trace.overall.score if trace.overall else None, len(trace.errors),
    )
    return trace
