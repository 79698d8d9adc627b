"""
Survey validation - logic + scoring + survey shape, in one report.

Use this before save/publish. Issues are concatenated in a fixed order
(logic, scoring, general) and each checker walks its input in order, so
identical inputs always give identical reports.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from surveyflow import issues as codes
from surveyflow.issues import (
    Domain,
    IssueSummary,
    Severity,
    ValidationIssue,
    filter_by_domain,
    filter_by_severity,
    issues_for_question,
    summarize_issues,
)
from surveyflow.logic_validator import validate_survey_logic
from surveyflow.model import QUESTION_TYPES, Question, ScoreConfig
from surveyflow.scoring_validator import validate_score_config
from surveyflow.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class SurveyValidationResult:
    is_valid: bool
    can_publish: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    logic: List[ValidationIssue] = field(default_factory=list)
    scoring: List[ValidationIssue] = field(default_factory=list)
    summary: Dict[str, IssueSummary] = field(default_factory=dict)

    def issues_for_question(self, question_id: str) -> List[ValidationIssue]:
        return issues_for_question(self.issues, question_id)

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]


def _general(code: str, severity: Severity, message: str, **kwargs) -> ValidationIssue:
    return ValidationIssue(domain=Domain.GENERAL, code=code, severity=severity, message=message, **kwargs)


def validate_general(
    questions: List[Question], settings: EngineSettings = DEFAULT_SETTINGS
) -> List[ValidationIssue]:
    """Survey-shape checks that belong to neither logic nor scoring."""
    results: List[ValidationIssue] = []

    if not questions:
        results.append(_general(codes.NO_QUESTIONS, Severity.ERROR, "Survey has no questions"))

    if len(questions) > settings.max_questions:
        results.append(_general(
            codes.TOO_MANY_QUESTIONS,
            Severity.WARNING,
            f"Survey has {len(questions)} questions (recommended max: {settings.max_questions})",
            details={"count": len(questions), "max": settings.max_questions},
        ))

    counts = Counter(q.id for q in questions)
    duplicates = [qid for qid in dict.fromkeys(q.id for q in questions) if counts[qid] > 1]
    if duplicates:
        results.append(_general(
            codes.DUPLICATE_QUESTION_IDS,
            Severity.ERROR,
            f"Duplicate question IDs found: {', '.join(duplicates)}",
            details={"duplicates": duplicates},
        ))

    for idx, q in enumerate(questions):
        if not q.text or not q.text.strip():
            results.append(_general(
                codes.EMPTY_QUESTION_TEXT, Severity.ERROR, "Question has no text", question_id=q.id,
            ))
        if q.type not in QUESTION_TYPES:
            results.append(_general(
                codes.INVALID_QUESTION_TYPE,
                Severity.ERROR,
                f'Invalid question type "{q.type}"',
                question_id=q.id,
                details={"type": q.type},
            ))
        if q.order != idx:
            results.append(_general(
                codes.ORDER_MISMATCH,
                Severity.WARNING,
                f"Question {q.id} has order {q.order}, expected {idx}",
                question_id=q.id,
                details={"order": q.order, "expected": idx},
            ))

    return results


def validate_survey(
    questions: List[Question],
    score_config: Optional[ScoreConfig] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SurveyValidationResult:
    """
    Validate a survey before save/publish.

    Never raises for survey content and always returns a complete result,
    including for an empty survey. can_publish currently equals is_valid.
    """
    questions = list(questions or [])

    logic = validate_survey_logic(questions, settings)
    scoring = validate_score_config(questions, score_config, settings)
    general = validate_general(questions, settings)
    issues = logic + scoring + general

    errors = filter_by_severity(issues, Severity.ERROR)
    is_valid = not errors

    result = SurveyValidationResult(
        is_valid=is_valid,
        can_publish=is_valid,
        issues=issues,
        errors=errors,
        warnings=filter_by_severity(issues, Severity.WARNING),
        logic=filter_by_domain(issues, Domain.LOGIC),
        scoring=filter_by_domain(issues, Domain.SCORING),
        summary={
            "logic": summarize_issues(logic),
            "scoring": summarize_issues(scoring),
            "general": summarize_issues(general),
            "total": summarize_issues(issues),
        },
    )
    logger.debug("Validated %d questions: %s", len(questions), format_validation_message(result))
    return result


def format_validation_message(result: SurveyValidationResult) -> str:
    """'2 errors, 1 warning' style summary, or 'No issues found'."""
    total = result.summary.get("total") or summarize_issues(result.issues)
    parts = []
    if total.error_count:
        parts.append(f"{total.error_count} error{'s' if total.error_count != 1 else ''}")
    if total.warning_count:
        parts.append(f"{total.warning_count} warning{'s' if total.warning_count != 1 else ''}")
    return ", ".join(parts) if parts else "No issues found"
