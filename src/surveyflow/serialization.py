"""
Serialization helpers for engine inputs and results.

Converts between the model objects and the camelCase dict shape used at
the API boundary (questions, logic rules, score configs), and renders
engine results (validation reports, score traces, analytics states,
graphs) as plain dicts. JSON output uses sorted keys, so equal inputs
give byte-identical text.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import yaml

from surveyflow.analytics_state import AnalyticsStateResult
from surveyflow.graph import QuestionGraph
from surveyflow.issues import IssueSummary, ValidationIssue
from surveyflow.model import (
    LogicRule,
    LogicRuleView,
    Question,
    RuleAction,
    ScoreBand,
    ScoreBandView,
    ScoreConfig,
    ScoringCategory,
)
from surveyflow.scoring import CategoryBreakdown, OverallScore, QuestionContribution, ScoreTrace
from surveyflow.validation import SurveyValidationResult


# =========================================================================
# INPUTS
# =========================================================================


def rule_to_dict(r: LogicRule) -> Dict[str, Any]:
    return {
        "id": r.id,
        "condition": r.condition,
        "action": r.action.value,
        "targetQuestionId": r.target_question_id,
    }


def rule_from_dict(d: Dict[str, Any]) -> LogicRule:
    return LogicRule(
        id=d["id"],
        condition=d.get("condition") or "",
        action=RuleAction(d.get("action", RuleAction.SKIP.value)),
        target_question_id=d.get("targetQuestionId"),
    )


def rule_view_to_dict(v: LogicRuleView) -> Dict[str, Any]:
    d = rule_to_dict(v.rule)
    d.update({"label": v.label, "description": v.description})
    return d


def rule_view_from_dict(d: Dict[str, Any]) -> LogicRuleView:
    return LogicRuleView(rule=rule_from_dict(d), label=d.get("label"), description=d.get("description"))


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "order": q.order,
        "text": q.text,
        "type": q.type,
        "required": q.required,
        "logicRules": [rule_to_dict(r) for r in q.logic_rules],
        "scorable": q.scorable,
        "scoreWeight": q.score_weight,
        "scoringCategory": q.scoring_category,
        "optionScores": dict(q.option_scores),
        "options": list(q.options),
        "reverse": q.reverse,
        "scaleMax": q.scale_max,
    }


def question_from_dict(d: Dict[str, Any], index: Optional[int] = None) -> Question:
    weight = d.get("scoreWeight")
    return Question(
        id=d["id"],
        order=d.get("order", index if index is not None else 0),
        text=d.get("text", d.get("question", "")) or "",
        type=d.get("type", "text"),
        required=bool(d.get("required", False)),
        logic_rules=[rule_from_dict(r) for r in d.get("logicRules") or []],
        scorable=bool(d.get("scorable", False)),
        score_weight=1.0 if weight is None else weight,
        scoring_category=d.get("scoringCategory"),
        option_scores=dict(d.get("optionScores") or {}),
        options=list(d.get("options") or []),
        reverse=bool(d.get("reverse", False)),
        scale_max=d.get("scaleMax"),
    )


def band_to_dict(b: ScoreBand) -> Dict[str, Any]:
    return {"id": b.id, "min": b.min, "max": b.max, "label": b.label}


def band_from_dict(d: Dict[str, Any]) -> ScoreBand:
    return ScoreBand(id=d["id"], min=d["min"], max=d["max"], label=d.get("label", ""))


def band_view_to_dict(v: ScoreBandView) -> Dict[str, Any]:
    d = band_to_dict(v.band)
    d.update({"color": v.color, "description": v.description})
    return d


def band_view_from_dict(d: Dict[str, Any]) -> ScoreBandView:
    return ScoreBandView(band=band_from_dict(d), color=d.get("color"), description=d.get("description"))


def category_to_dict(c: ScoringCategory) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "bands": [band_to_dict(b) for b in c.bands],
    }


def category_from_dict(d: Dict[str, Any]) -> ScoringCategory:
    return ScoringCategory(
        id=d["id"],
        name=d.get("name") or d.get("label") or "",
        description=d.get("description"),
        bands=[band_from_dict(b) for b in d.get("bands") or []],
    )


def score_config_to_dict(c: ScoreConfig) -> Dict[str, Any]:
    return {
        "enabled": c.enabled,
        "categories": [category_to_dict(cat) for cat in c.categories],
        "scoreRanges": [band_to_dict(b) for b in c.score_ranges],
    }


def score_config_from_dict(d: Optional[Dict[str, Any]]) -> Optional[ScoreConfig]:
    if d is None:
        return None
    return ScoreConfig(
        enabled=bool(d.get("enabled", False)),
        categories=[category_from_dict(c) for c in d.get("categories") or []],
        score_ranges=[band_from_dict(b) for b in d.get("scoreRanges") or []],
    )


def survey_to_dict(questions: List[Question], score_config: Optional[ScoreConfig] = None) -> Dict[str, Any]:
    return {
        "questions": [question_to_dict(q) for q in questions],
        "scoreConfig": score_config_to_dict(score_config) if score_config is not None else None,
    }


def survey_from_dict(d: Dict[str, Any]) -> Tuple[List[Question], Optional[ScoreConfig]]:
    if not isinstance(d, dict):
        raise TypeError(f"Unsupported survey document type: {type(d)}")
    questions = [question_from_dict(q, idx) for idx, q in enumerate(d.get("questions") or [])]
    return questions, score_config_from_dict(d.get("scoreConfig"))


def survey_to_json(questions: List[Question], score_config: Optional[ScoreConfig] = None) -> str:
    return json.dumps(survey_to_dict(questions, score_config), sort_keys=True)


def survey_from_json(s: str) -> Tuple[List[Question], Optional[ScoreConfig]]:
    return survey_from_dict(json.loads(s))


def survey_to_yaml(questions: List[Question], score_config: Optional[ScoreConfig] = None) -> str:
    return yaml.safe_dump(survey_to_dict(questions, score_config))


def survey_from_yaml(s: str) -> Tuple[List[Question], Optional[ScoreConfig]]:
    return survey_from_dict(yaml.safe_load(s) or {})


# =========================================================================
# RESULTS
# =========================================================================


def issue_to_dict(i: ValidationIssue) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "domain": i.domain.value,
        "code": i.code,
        "severity": i.severity.value,
        "message": i.message,
    }
    for key, value in (
        ("questionId", i.question_id),
        ("ruleId", i.rule_id),
        ("categoryId", i.category_id),
        ("bandId", i.band_id),
    ):
        if value is not None:
            d[key] = value
    if i.details:
        d["details"] = i.details
    return d


def summary_to_dict(s: IssueSummary) -> Dict[str, int]:
    return {"errorCount": s.error_count, "warningCount": s.warning_count, "infoCount": s.info_count}


def validation_result_to_dict(r: SurveyValidationResult) -> Dict[str, Any]:
    return {
        "isValid": r.is_valid,
        "canPublish": r.can_publish,
        "issues": [issue_to_dict(i) for i in r.issues],
        "errors": [issue_to_dict(i) for i in r.errors],
        "warnings": [issue_to_dict(i) for i in r.warnings],
        "logic": [issue_to_dict(i) for i in r.logic],
        "scoring": [issue_to_dict(i) for i in r.scoring],
        "summary": {name: summary_to_dict(s) for name, s in r.summary.items()},
    }


def _contribution_to_dict(c: QuestionContribution) -> Dict[str, Any]:
    return {
        "questionId": c.question_id,
        "questionText": c.question_text,
        "questionType": c.question_type,
        "category": c.category_id,
        "categoryName": c.category_name,
        "rawAnswer": c.raw_answer,
        "optionScoreUsed": c.option_score_used,
        "maxPoints": c.max_points,
        "weight": c.weight,
        "reverse": c.reverse,
        "contributionToCategory": c.contribution,
        "maxContribution": c.max_contribution,
        "normalizedContribution": c.normalized_contribution,
    }


def _breakdown_to_dict(b: CategoryBreakdown) -> Dict[str, Any]:
    return {
        "categoryId": b.category_id,
        "categoryName": b.category_name,
        "rawScore": b.raw_score,
        "maxPossibleScore": b.max_possible_score,
        "normalizedScore": b.normalized_score,
        "band": band_to_dict(b.band) if b.band else None,
        "questionCount": b.question_count,
    }


def _overall_to_dict(o: Optional[OverallScore]) -> Optional[Dict[str, Any]]:
    if o is None:
        return None
    return {
        "score": o.score,
        "band": band_view_to_dict(o.index_band) if o.index_band else None,
        "matchedRule": band_to_dict(o.matched_rule) if o.matched_rule else None,
    }


def score_trace_to_dict(t: ScoreTrace) -> Dict[str, Any]:
    return {
        "meta": {
            "scoringEnabled": t.meta.scoring_enabled,
            "questionCount": t.meta.question_count,
            "answeredCount": t.meta.answered_count,
            "rollupPolicy": t.meta.rollup_policy,
        },
        "config": score_config_to_dict(t.config) if t.config is not None else None,
        "questions": [_contribution_to_dict(c) for c in t.questions],
        "categories": [_breakdown_to_dict(b) for b in t.categories],
        "overall": _overall_to_dict(t.overall),
        "errors": list(t.errors),
    }


def analytics_state_to_dict(r: AnalyticsStateResult) -> Dict[str, Any]:
    return {
        "state": r.state.value,
        "title": r.title,
        "message": r.message,
        "showScoring": r.show_scoring,
        "showTrends": r.show_trends,
        "showParticipation": r.show_participation,
        "showQuestionSummary": r.show_question_summary,
        "severity": r.severity,
    }


def graph_to_dict(g: QuestionGraph) -> Dict[str, Any]:
    return {
        "nodes": {
            node_id: {"order": n.order, "text": n.text, "reachable": n.reachable,
                      "rules": [rule_to_dict(r) for r in n.rules]}
            for node_id, n in g.nodes.items()
        },
        "edges": [
            {"from": e.from_id, "to": e.to, "ruleId": e.rule.id, "type": e.type.value}
            for e in g.edges
        ],
        "entryNode": g.entry_node,
        "exitNodes": sorted(g.exit_nodes),
    }


def result_to_dict(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, SurveyValidationResult):
        return validation_result_to_dict(obj)
    if isinstance(obj, ScoreTrace):
        return score_trace_to_dict(obj)
    if isinstance(obj, AnalyticsStateResult):
        return analytics_state_to_dict(obj)
    if isinstance(obj, QuestionGraph):
        return graph_to_dict(obj)
    if isinstance(obj, ValidationIssue):
        return issue_to_dict(obj)
    raise TypeError(f"Unsupported result type: {type(obj)}")


def to_json(obj: Any) -> str:
    """Deterministic JSON text for a result object or an already-built dict."""
    d = obj if isinstance(obj, dict) else result_to_dict(obj)
    return json.dumps(d, sort_keys=True)
