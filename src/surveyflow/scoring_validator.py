"""
Scoring Validator - sanity checks over a survey's score configuration.

Catches misconfigurations that would produce incorrect or confusing
results before the survey is published:
    - Bands: gaps, overlaps, inverted or out-of-range bounds, for the global
      ranges and for each category's custom bands
    - Categories: unused categories, dangling references, missing option scores
    - Weights: invalid values, one question dominating, extreme spread

Nothing runs when scoring is disabled.

normalize_score_config and normalize_scoring_question are the builder-side
counterparts: they return cleaned copies (deduplicated ids, repaired bands,
clamped weights) instead of reporting issues.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Set

from surveyflow import issues as codes
from surveyflow.issues import Domain, Severity, ValidationIssue, preview
from surveyflow.model import CHOICE_TYPES, Question, ScoreBand, ScoreConfig, ScoringCategory
from surveyflow.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)

SCORE_FLOOR = 0
SCORE_CEILING = 100


def _issue(code: str, severity: Severity, message: str, **kwargs) -> ValidationIssue:
    return ValidationIssue(domain=Domain.SCORING, code=code, severity=severity, message=message, **kwargs)


def _band_dict(band: ScoreBand) -> Dict[str, object]:
    return {"id": band.id, "label": band.label, "min": band.min, "max": band.max}


# =========================================================================
# BANDS
# =========================================================================


def check_band_coverage(bands: Sequence[ScoreBand]) -> List[ValidationIssue]:
    """
    Every integer in [0, 100] must fall in some band.

    Walks the bands sorted by min with a coverage cursor; each uncovered
    stretch is reported on its own.
    """
    results: List[ValidationIssue] = []
    if not bands:
        return results

    cursor = SCORE_FLOOR
    for band in sorted(bands, key=lambda b: b.min):
        if band.min > cursor:
            results.append(_issue(
                codes.BAND_GAP,
                Severity.ERROR,
                f"Score range {cursor}-{band.min - 1} has no assigned band",
                details={"gapStart": cursor, "gapEnd": band.min - 1},
            ))
        cursor = max(cursor, band.max + 1)

    if cursor <= SCORE_CEILING:
        results.append(_issue(
            codes.BAND_GAP,
            Severity.ERROR,
            f"Score range {cursor}-{SCORE_CEILING} has no assigned band",
            details={"gapStart": cursor, "gapEnd": SCORE_CEILING},
        ))

    return results


def check_band_overlaps(bands: Sequence[ScoreBand]) -> List[ValidationIssue]:
    """Every unordered pair of bands that shares at least one score."""
    results: List[ValidationIssue] = []

    for i, a in enumerate(bands):
        for b in bands[i + 1:]:
            if a.min <= b.max and b.min <= a.max:
                start = max(a.min, b.min)
                end = min(a.max, b.max)
                results.append(_issue(
                    codes.BAND_OVERLAP,
                    Severity.ERROR,
                    f'Bands "{a.label or a.id}" and "{b.label or b.id}" overlap in range {start}-{end}',
                    band_id=a.id,
                    details={
                        "band1": _band_dict(a),
                        "band2": _band_dict(b),
                        "overlapRange": {"start": start, "end": end},
                    },
                ))

    return results


def check_band_ranges(bands: Sequence[ScoreBand]) -> List[ValidationIssue]:
    """Per-band bounds: min < max, min >= 0 (error), max <= 100 (warning)."""
    results: List[ValidationIssue] = []

    for band in bands:
        name = band.label or band.id
        if band.min >= band.max:
            results.append(_issue(
                codes.INVALID_BAND_RANGE,
                Severity.ERROR,
                f'Band "{name}" has invalid range: min ({band.min}) >= max ({band.max})',
                band_id=band.id,
                details={"min": band.min, "max": band.max},
            ))
        if band.min < SCORE_FLOOR:
            results.append(_issue(
                codes.BAND_OUT_OF_RANGE,
                Severity.ERROR,
                f'Band "{name}" has negative min value ({band.min})',
                band_id=band.id,
                details={"min": band.min},
            ))
        if band.max > SCORE_CEILING:
            results.append(_issue(
                codes.BAND_OUT_OF_RANGE,
                Severity.WARNING,
                f'Band "{name}" max value ({band.max}) exceeds {SCORE_CEILING}',
                band_id=band.id,
                details={"max": band.max},
            ))

    return results


def check_band_set(bands: Sequence[ScoreBand]) -> List[ValidationIssue]:
    results = check_band_coverage(bands)
    results.extend(check_band_overlaps(bands))
    results.extend(check_band_ranges(bands))
    return results


def check_bands(score_config: ScoreConfig) -> List[ValidationIssue]:
    """
    Check the global score ranges, then every category's custom bands.

    Issues about a category's own bands carry its category_id.
    """
    bands = list(score_config.score_ranges or [])
    if bands:
        results = check_band_set(bands)
    else:
        results = [_issue(
            codes.NO_BANDS_DEFINED,
            Severity.WARNING,
            "Scoring is enabled but no score bands are defined",
        )]

    for category in score_config.categories or []:
        if category.bands:
            results.extend(
                replace(issue, category_id=category.id) for issue in check_band_set(category.bands)
            )
    return results


# =========================================================================
# CATEGORIES
# =========================================================================


def check_category_usage(questions: List[Question], score_config: ScoreConfig) -> List[ValidationIssue]:
    """Declared categories that no scorable question uses."""
    results: List[ValidationIssue] = []
    categories = score_config.categories or []
    if not categories:
        return results

    usage: Dict[str, int] = {c.id: 0 for c in categories}
    for q in questions:
        if q.scorable and q.scoring_category in usage:
            usage[q.scoring_category] += 1

    for category in categories:
        if usage.get(category.id, 0) == 0:
            results.append(_issue(
                codes.UNUSED_CATEGORY,
                Severity.WARNING,
                f'Category "{category.display_name}" is defined but no questions are assigned to it',
                category_id=category.id,
            ))

    return results


def check_scorable_questions(
    questions: List[Question],
    score_config: ScoreConfig,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> List[ValidationIssue]:
    """Each scorable question needs a valid category and, for choices, option scores."""
    results: List[ValidationIssue] = []
    category_ids = set(score_config.category_ids)

    for q in questions:
        if not q.scorable:
            continue

        if not q.scoring_category:
            results.append(_issue(
                codes.SCORABLE_NO_CATEGORY,
                Severity.WARNING,
                f'Scorable question "{preview(q.text, settings.text_preview_length)}" has no category assigned',
                question_id=q.id,
            ))
        elif category_ids and q.scoring_category not in category_ids:
            results.append(_issue(
                codes.INVALID_CATEGORY_REF,
                Severity.ERROR,
                f'Question references non-existent category "{q.scoring_category}"',
                question_id=q.id,
                category_id=q.scoring_category,
            ))

        if q.type in CHOICE_TYPES and not q.option_scores:
            results.append(_issue(
                codes.MISSING_OPTION_SCORES,
                Severity.WARNING,
                f"Scorable {q.type} question has no option scores defined",
                question_id=q.id,
            ))

    return results


# =========================================================================
# WEIGHTS
# =========================================================================


def is_valid_weight(weight: object) -> bool:
    if weight is None:
        return True
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return False
    return math.isfinite(weight) and weight >= 0


def check_score_weights(questions: List[Question]) -> List[ValidationIssue]:
    results: List[ValidationIssue] = []
    for q in questions:
        if q.scorable and not is_valid_weight(q.score_weight):
            results.append(_issue(
                codes.INVALID_SCORE_WEIGHT,
                Severity.ERROR,
                f"Question weight {q.score_weight!r} must be a finite number >= 0",
                question_id=q.id,
                details={"weight": q.score_weight},
            ))
    return results


def check_weight_distribution(
    questions: List[Question], settings: EngineSettings = DEFAULT_SETTINGS
) -> List[ValidationIssue]:
    """
    Flag suspicious weight distributions.

    Needs at least `min_scorable_for_weight_checks` scorable questions with
    valid weights; fewer data points say nothing about balance.
    """
    results: List[ValidationIssue] = []
    scorable = [q for q in questions if q.scorable and is_valid_weight(q.score_weight)]
    if len(scorable) < settings.min_scorable_for_weight_checks:
        return results

    weights = [q.weight for q in scorable]
    total = sum(weights)

    if total > 0:
        for q in scorable:
            percentage = q.weight / total * 100
            if percentage > settings.weight_dominance_percent:
                results.append(_issue(
                    codes.WEIGHT_IMBALANCE,
                    Severity.WARNING,
                    f"Question has {percentage:.0f}% of total weight ({q.weight:g} of {total:g})",
                    question_id=q.id,
                    details={"weight": q.weight, "totalWeight": total, "percentage": percentage},
                ))

    heaviest = max(weights)
    lightest = min(weights)
    if lightest > 0 and heaviest > lightest * settings.weight_variance_ratio:
        ratio = heaviest / lightest
        results.append(_issue(
            codes.EXTREME_WEIGHT_VARIANCE,
            Severity.INFO,
            f"Weight variance is high: max weight ({heaviest:g}) is {ratio:.1f}x the min weight ({lightest:g})",
            details={"maxWeight": heaviest, "minWeight": lightest, "ratio": ratio},
        ))

    return results


# =========================================================================
# NORMALIZATION
# =========================================================================

MAX_SCORE_WEIGHT = 1000


def sanitize_bands(bands: Optional[Iterable[ScoreBand]]) -> List[ScoreBand]:
    """
    Return a cleaned copy of a band list, sorted by min.

    Bands without an id or repeating an earlier id are dropped and inverted
    bounds are swapped. A band overlapping the one before it is moved to
    start right after it, and dropped if that leaves it empty.
    """
    seen: Set[str] = set()
    deduped: List[ScoreBand] = []
    for band in bands or []:
        if band is None or not band.id or band.id in seen:
            continue
        seen.add(band.id)
        if band.min > band.max:
            deduped.append(replace(band, min=band.max, max=band.min))
        else:
            deduped.append(replace(band))
    deduped.sort(key=lambda b: b.min)

    sanitized: List[ScoreBand] = []
    for band in deduped:
        if sanitized and band.min <= sanitized[-1].max:
            adjusted_min = sanitized[-1].max + 1
            if adjusted_min >= band.max:
                logger.debug("Dropping band %s: fully overlapped by %s", band.id, sanitized[-1].id)
                continue
            band = replace(band, min=adjusted_min)
        sanitized.append(band)
    return sanitized


def clamp_score_weight(weight: object) -> Optional[float]:
    """Clamp a weight into [0, MAX_SCORE_WEIGHT]; None for anything that is not a finite number."""
    if weight is None or isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return None
    if not math.isfinite(weight):
        return None
    return max(0, min(weight, MAX_SCORE_WEIGHT))


def sanitize_option_scores(option_scores: Optional[Dict[str, object]]) -> Dict[str, float]:
    """Copy of the mapping with every non-finite or non-numeric score replaced by 0."""
    sanitized: Dict[str, float] = {}
    for option, value in (option_scores or {}).items():
        numeric = isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
        sanitized[option] = value if numeric else 0
    return sanitized


def normalize_scoring_question(question: Question) -> Question:
    """Copy of the question with a clamped weight and sanitized option scores."""
    weight = clamp_score_weight(question.score_weight)
    return replace(
        question,
        score_weight=1.0 if weight is None else weight,
        option_scores=sanitize_option_scores(question.option_scores),
        logic_rules=list(question.logic_rules),
        options=list(question.options),
    )


def normalize_score_config(score_config: Optional[ScoreConfig]) -> Optional[ScoreConfig]:
    """
    Return a cleaned copy of a score configuration.

    Categories without an id or repeating an earlier id are dropped. The
    global ranges and every category's custom bands go through
    sanitize_bands. The input is left untouched.
    """
    if score_config is None:
        return None

    seen: Set[str] = set()
    categories: List[ScoringCategory] = []
    for category in score_config.categories or []:
        if category is None or not category.id or category.id in seen:
            continue
        seen.add(category.id)
        categories.append(replace(category, bands=sanitize_bands(category.bands)))

    return ScoreConfig(
        enabled=score_config.enabled,
        categories=categories,
        score_ranges=sanitize_bands(score_config.score_ranges),
    )


# =========================================================================
# ENTRY POINT
# =========================================================================


def validate_score_config(
    questions: List[Question],
    score_config: Optional[ScoreConfig],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> List[ValidationIssue]:
    """Main scoring validation entry point."""
    if score_config is None or not score_config.enabled:
        return []

    results = check_bands(score_config)
    results.extend(check_category_usage(questions, score_config))
    results.extend(check_scorable_questions(questions, score_config, settings))
    results.extend(check_score_weights(questions))
    results.extend(check_weight_distribution(questions, settings))

    logger.debug("Scoring checks: %d bands, %d categories, %d issues",
                 len(score_config.score_ranges), len(score_config.categories), len(results))
    return results
