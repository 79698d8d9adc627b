"""
Validation issue model shared by every checker.

Checkers never raise on survey content. They return lists of
ValidationIssue; the aggregator decides publish eligibility.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Severity(Enum):
    ERROR = "error"      # blocks publish
    WARNING = "warning"  # surfaced, non-blocking
    INFO = "info"        # advisory only


class Domain(Enum):
    LOGIC = "logic"
    SCORING = "scoring"
    GENERAL = "general"


# Logic
MISSING_TARGET = "MISSING_TARGET"
RULE_WITHOUT_TARGET = "RULE_WITHOUT_TARGET"
END_RULE_WITH_TARGET = "END_RULE_WITH_TARGET"
SELF_TARGET = "SELF_TARGET"
DUPLICATE_RULE_ID = "DUPLICATE_RULE_ID"
INVALID_CONDITION = "INVALID_CONDITION"
CONDITION_UNKNOWN_QUESTION = "CONDITION_UNKNOWN_QUESTION"
BACKWARDS_JUMP = "BACKWARDS_JUMP"
UNREACHABLE_QUESTION = "UNREACHABLE_QUESTION"
CONFLICTING_RULES = "CONFLICTING_RULES"

# Scoring
NO_BANDS_DEFINED = "NO_BANDS_DEFINED"
BAND_GAP = "BAND_GAP"
BAND_OVERLAP = "BAND_OVERLAP"
INVALID_BAND_RANGE = "INVALID_BAND_RANGE"
BAND_OUT_OF_RANGE = "BAND_OUT_OF_RANGE"
UNUSED_CATEGORY = "UNUSED_CATEGORY"
SCORABLE_NO_CATEGORY = "SCORABLE_NO_CATEGORY"
INVALID_CATEGORY_REF = "INVALID_CATEGORY_REF"
MISSING_OPTION_SCORES = "MISSING_OPTION_SCORES"
INVALID_SCORE_WEIGHT = "INVALID_SCORE_WEIGHT"
WEIGHT_IMBALANCE = "WEIGHT_IMBALANCE"
EXTREME_WEIGHT_VARIANCE = "EXTREME_WEIGHT_VARIANCE"

# General
NO_QUESTIONS = "NO_QUESTIONS"
TOO_MANY_QUESTIONS = "TOO_MANY_QUESTIONS"
DUPLICATE_QUESTION_IDS = "DUPLICATE_QUESTION_IDS"
EMPTY_QUESTION_TEXT = "EMPTY_QUESTION_TEXT"
ORDER_MISMATCH = "ORDER_MISMATCH"
INVALID_QUESTION_TYPE = "INVALID_QUESTION_TYPE"


@dataclass
class ValidationIssue:
    """One finding of a checker."""

    domain: Domain
    code: str
    severity: Severity
    message: str
    question_id: Optional[str] = None
    rule_id: Optional[str] = None
    category_id: Optional[str] = None
    band_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IssueSummary:
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0


def summarize_issues(issues: Iterable[ValidationIssue]) -> IssueSummary:
    summary = IssueSummary()
    for issue in issues:
        if issue.severity is Severity.ERROR:
            summary.error_count += 1
        elif issue.severity is Severity.WARNING:
            summary.warning_count += 1
        else:
            summary.info_count += 1
    return summary


def filter_by_severity(issues: Iterable[ValidationIssue], severity: Severity) -> List[ValidationIssue]:
    return [i for i in issues if i.severity is severity]


def filter_by_domain(issues: Iterable[ValidationIssue], domain: Domain) -> List[ValidationIssue]:
    return [i for i in issues if i.domain is domain]


def issues_for_question(issues: Iterable[ValidationIssue], question_id: str) -> List[ValidationIssue]:
    """Issues that point at a specific question."""
    return [i for i in issues if i.question_id == question_id]


def preview(text: Optional[str], length: int = 50) -> str:
    """Shorten question text for messages."""
    text = (text or "").strip()
    if len(text) <= length:
        return text
    return text[:length] + "..."
