"""
Analytics state classification.

Derives a small state label from aggregate counts so analytics surfaces
know which views they may render. Evaluated in strict priority order:

    1. no-responses           nothing to analyze yet
    2. no-scoring             scoring intentionally disabled
    3. misconfigured-scoring  enabled but no categories, no bands, or
                              every dimension score null despite responses
    4. single-version         valid, but trends need two or more versions
    5. healthy

Total over its inputs; the only side channel is the diagnostic observer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from surveyflow import diagnostics
from surveyflow.diagnostics import DiagnosticEvent, Observer, resolve_observer

logger = logging.getLogger(__name__)


class AnalyticsState(Enum):
    NO_RESPONSES = "no-responses"
    NO_SCORING = "no-scoring"
    MISCONFIGURED_SCORING = "misconfigured-scoring"
    SINGLE_VERSION = "single-version"
    HEALTHY = "healthy"


@dataclass
class AnalyticsStateInput:
    scoring_enabled: bool
    categories: Optional[Sequence[Any]] = None
    score_ranges: Optional[Sequence[Any]] = None
    response_count: int = 0
    version_count: int = 0
    dimension_scores: Optional[Mapping[str, Optional[float]]] = None


@dataclass
class AnalyticsStateResult:
    state: AnalyticsState
    title: str
    message: str
    show_scoring: bool
    show_trends: bool
    show_participation: bool
    show_question_summary: bool
    severity: str  # info | warning | error


def _misconfigured(title: str, message: str) -> AnalyticsStateResult:
    return AnalyticsStateResult(
        state=AnalyticsState.MISCONFIGURED_SCORING,
        title=title,
        message=message,
        show_scoring=False,
        show_trends=False,
        show_participation=True,
        show_question_summary=True,
        severity="error",
    )


def _all_null(scores: Mapping[str, Optional[float]]) -> bool:
    return all(score is None for score in scores.values())


def classify_analytics_state(
    data: AnalyticsStateInput, observer: Optional[Observer] = None
) -> AnalyticsStateResult:
    if data.response_count == 0:
        return AnalyticsStateResult(
            state=AnalyticsState.NO_RESPONSES,
            title="Waiting for Responses",
            message="This survey hasn't received any responses yet. "
                    "Analytics will appear once participants submit their responses.",
            show_scoring=False,
            show_trends=False,
            show_participation=True,
            show_question_summary=False,
            severity="info",
        )

    if not data.scoring_enabled:
        return AnalyticsStateResult(
            state=AnalyticsState.NO_SCORING,
            title="Scoring Not Enabled",
            message="This survey does not have scoring configured. "
                    "Only participation metrics and question summaries are available.",
            show_scoring=False,
            show_trends=False,
            show_participation=True,
            show_question_summary=True,
            severity="info",
        )

    if not data.categories:
        return _misconfigured(
            "Scoring Misconfigured",
            "Scoring is enabled but no categories are defined. "
            "Please configure scoring categories in the Survey Builder.",
        )

    if not data.score_ranges:
        return _misconfigured(
            "Score Ranges Missing",
            "Scoring categories exist but no score ranges (bands) are configured. "
            "Please define score ranges in the Survey Builder.",
        )

    if data.dimension_scores is not None and _all_null(data.dimension_scores) and data.response_count > 0:
        resolve_observer(observer)(DiagnosticEvent(
            code=diagnostics.SCORES_ALL_NULL,
            message="Scoring enabled with responses but all dimension scores are null. "
                    "Questions may not be mapped to scoring categories.",
            source="analytics",
            details={"responseCount": data.response_count},
        ))
        return _misconfigured(
            "No Dimension Data",
            "Responses exist but no scores were calculated. "
            "Ensure questions are mapped to scoring categories.",
        )

    if data.version_count <= 1:
        return AnalyticsStateResult(
            state=AnalyticsState.SINGLE_VERSION,
            title="Single Snapshot Mode",
            message="Only one scoring version available. "
                    "Trend analysis and before/after comparisons require multiple versions.",
            show_scoring=True,
            show_trends=False,
            show_participation=True,
            show_question_summary=True,
            severity="info",
        )

    return AnalyticsStateResult(
        state=AnalyticsState.HEALTHY,
        title="Analytics Ready",
        message="All analytics data is available.",
        show_scoring=True,
        show_trends=True,
        show_participation=True,
        show_question_summary=True,
        severity="info",
    )


def is_distribution_empty(buckets: Optional[Sequence[Mapping[str, Any]]]) -> bool:
    """True when there are no buckets or every bucket count is 0."""
    if not buckets:
        return True
    return all(b.get("count", 0) == 0 for b in buckets)


def check_analytics_invariants(
    scoring_enabled: bool,
    response_count: int,
    dimension_scores: Optional[Mapping[str, Optional[float]]] = None,
    band_distribution: Optional[Sequence[Mapping[str, Any]]] = None,
    index_distribution: Optional[Sequence[Mapping[str, Any]]] = None,
    observer: Optional[Observer] = None,
) -> List[DiagnosticEvent]:
    """
    Look for clearly broken analytics snapshots.

    Each violation is sent to the observer; the emitted events are also
    returned so callers can act on them directly.
    """
    events: List[DiagnosticEvent] = []
    if not scoring_enabled or response_count <= 0:
        return events

    details: Dict[str, Any] = {"responseCount": response_count}

    if dimension_scores is not None and _all_null(dimension_scores):
        events.append(DiagnosticEvent(
            diagnostics.SCORES_ALL_NULL,
            f"{response_count} responses but all dimension scores are null",
            "analytics", dict(details),
        ))
    if band_distribution is not None and all(b.get("count", 0) == 0 for b in band_distribution):
        events.append(DiagnosticEvent(
            diagnostics.BANDS_ALL_ZERO,
            f"{response_count} responses but all band counts are 0",
            "analytics", dict(details),
        ))
    if index_distribution is not None and all(b.get("count", 0) == 0 for b in index_distribution):
        events.append(DiagnosticEvent(
            diagnostics.INDEX_DIST_ALL_ZERO,
            f"{response_count} responses but all index distribution counts are 0",
            "analytics", dict(details),
        ))

    emit = resolve_observer(observer)
    for event in events:
        emit(event)
    return events
