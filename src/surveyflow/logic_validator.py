"""
Survey Logic Validator - flow diagnostics over the question graph.

This module checks a survey's branching before save/publish:
    - Reachability of every question from the entry question
    - Backwards jumps and true loops
    - Rules pointing at missing questions
    - Rules with the same trigger but different outcomes
    - Rule hygiene (targets, conditions, ids)

IMPORTANT: Read-only. It never modifies the questions it is given and
never raises on survey content; every finding is a ValidationIssue.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from surveyflow import issues as codes
from surveyflow.conditions import ConditionParseError, condition_key, try_parse_condition
from surveyflow.graph import END_SENTINEL, LogicEdge, QuestionGraph, build_question_graph
from surveyflow.issues import Domain, Severity, ValidationIssue, preview
from surveyflow.model import Question, RuleAction
from surveyflow.settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def _issue(code: str, severity: Severity, message: str, **kwargs) -> ValidationIssue:
    return ValidationIssue(domain=Domain.LOGIC, code=code, severity=severity, message=message, **kwargs)


# =========================================================================
# REACHABILITY
# =========================================================================


def analyze_reachability(graph: QuestionGraph) -> Set[str]:
    """
    Breadth-first walk from the entry question over the flow view
    (next question + skip + show). Marks visited nodes reachable and
    returns their ids.
    """
    reachable: Set[str] = set()
    if graph.entry_node is None or graph.entry_node not in graph.nodes:
        return reachable

    adjacency = graph.flow_adjacency()
    queue = deque([graph.entry_node])
    while queue:
        current = queue.popleft()
        if current in reachable:
            continue
        reachable.add(current)
        graph.nodes[current].reachable = True
        for neighbor in adjacency.get(current, []):
            if neighbor not in reachable:
                queue.append(neighbor)

    return reachable


def check_unreachable_questions(
    graph: QuestionGraph, settings: EngineSettings = DEFAULT_SETTINGS
) -> List[ValidationIssue]:
    """Report questions no path of normal flow plus logic edges can reach."""
    results: List[ValidationIssue] = []
    for node_id, node in graph.nodes.items():
        if not node.reachable:
            results.append(_issue(
                codes.UNREACHABLE_QUESTION,
                Severity.WARNING,
                f'Question "{preview(node.text, settings.text_preview_length)}" may never be shown due to logic rules',
                question_id=node_id,
                details={"questionOrder": node.order},
            ))
    return results


# =========================================================================
# LOOPS
# =========================================================================


@dataclass
class CycleReport:
    """
    Result of the depth-first loop walk.

    backwards_jumps: skip edges whose target is not after their source
    cycles: node paths that returned to a node still on the recursion
            stack, e.g. ["q1", "q2", "q1"]
    """

    backwards_jumps: List[LogicEdge] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def closes_cycle(self, edge: LogicEdge) -> bool:
        for cycle in self.cycles:
            for src, dst in zip(cycle, cycle[1:]):
                if src == edge.from_id and dst == edge.to:
                    return True
        return False


def detect_cycles(graph: QuestionGraph) -> CycleReport:
    """
    Depth-first walk over the skip view (next question + skip edges),
    tracking the recursion stack.

    The walk starts at the entry question, then restarts from every
    question the flow view reaches that the skip view did not, so
    questions only reachable through show edges are checked too.

    Every skip edge out of a visited node whose target order is <= the
    source order is a backwards jump (recorded once per edge). Revisiting
    a node on the recursion stack records the loop path.
    """
    report = CycleReport()
    if graph.entry_node is None or graph.entry_node not in graph.nodes:
        return report

    adjacency = graph.skip_adjacency()
    skip_edges: Dict[str, List[LogicEdge]] = {}
    for edge in graph.edges:
        if edge.type is RuleAction.SKIP and edge.to in graph.nodes:
            skip_edges.setdefault(edge.from_id, []).append(edge)

    visited: Set[str] = set()
    rec_stack: Set[str] = set()
    path: List[str] = []
    stack: List[Tuple[str, Iterator[str]]] = []

    def enter(node_id: str) -> None:
        visited.add(node_id)
        rec_stack.add(node_id)
        path.append(node_id)
        source_order = graph.order_of(node_id)
        for edge in skip_edges.get(node_id, []):
            if graph.order_of(edge.to) <= source_order:
                report.backwards_jumps.append(edge)
        stack.append((node_id, iter(adjacency.get(node_id, []))))

    def walk(root: str) -> None:
        enter(root)
        while stack:
            node_id, neighbors = stack[-1]
            neighbor = next(neighbors, None)
            if neighbor is None:
                stack.pop()
                rec_stack.discard(node_id)
                path.pop()
                continue
            if neighbor in rec_stack:
                report.cycles.append(path[path.index(neighbor):] + [neighbor])
            elif neighbor not in visited:
                enter(neighbor)

    walk(graph.entry_node)
    for node_id in sorted(analyze_reachability(graph), key=graph.order_of):
        if node_id not in visited:
            walk(node_id)

    return report


def check_backwards_jumps(graph: QuestionGraph, report: Optional[CycleReport] = None) -> List[ValidationIssue]:
    """
    Surface backwards jumps as warnings.

    They may be intentional "go back" flows, so they never block publish.
    details["closesCycle"] tells whether the edge is part of a detected loop.
    """
    if report is None:
        report = detect_cycles(graph)

    results: List[ValidationIssue] = []
    for edge in report.backwards_jumps:
        results.append(_issue(
            codes.BACKWARDS_JUMP,
            Severity.WARNING,
            f'Rule creates a backwards jump from "{edge.from_id}" to "{edge.to}" which could create a loop',
            question_id=edge.from_id,
            rule_id=edge.rule.id,
            details={
                "from": edge.from_id,
                "to": edge.to,
                "targetId": edge.to,
                "closesCycle": report.closes_cycle(edge),
            },
        ))
    return results


# =========================================================================
# RULE CHECKS
# =========================================================================


def check_missing_targets(graph: QuestionGraph, question_ids: Set[str]) -> List[ValidationIssue]:
    """Rules whose target is neither a question id nor the end sentinel."""
    results: List[ValidationIssue] = []
    for edge in graph.edges:
        if edge.to != END_SENTINEL and edge.to not in question_ids:
            results.append(_issue(
                codes.MISSING_TARGET,
                Severity.ERROR,
                f'Rule targets non-existent question "{edge.to}"',
                question_id=edge.from_id,
                rule_id=edge.rule.id,
                details={"targetId": edge.to},
            ))
    return results


def check_rule_targets(questions: List[Question]) -> List[ValidationIssue]:
    """Target hygiene: skip/show need one, end must not have one, no self jumps."""
    results: List[ValidationIssue] = []
    for q in questions:
        for rule in q.logic_rules or []:
            target = rule.target_question_id
            if rule.action is RuleAction.END:
                if target:
                    results.append(_issue(
                        codes.END_RULE_WITH_TARGET,
                        Severity.WARNING,
                        f'End rule carries target "{target}", which is ignored',
                        question_id=q.id,
                        rule_id=rule.id,
                        details={"targetId": target},
                    ))
            elif not target:
                results.append(_issue(
                    codes.RULE_WITHOUT_TARGET,
                    Severity.ERROR,
                    f"{rule.action.value.capitalize()} rule has no target question",
                    question_id=q.id,
                    rule_id=rule.id,
                ))
            elif target == q.id:
                results.append(_issue(
                    codes.SELF_TARGET,
                    Severity.WARNING,
                    f'Rule on "{q.id}" targets its own question',
                    question_id=q.id,
                    rule_id=rule.id,
                    details={"targetId": target},
                ))
    return results


def check_duplicate_rule_ids(questions: List[Question]) -> List[ValidationIssue]:
    results: List[ValidationIssue] = []
    for q in questions:
        seen: Set[str] = set()
        reported: Set[str] = set()
        for rule in q.logic_rules or []:
            if rule.id in seen and rule.id not in reported:
                reported.add(rule.id)
                results.append(_issue(
                    codes.DUPLICATE_RULE_ID,
                    Severity.WARNING,
                    f'Rule id "{rule.id}" is used more than once on this question',
                    question_id=q.id,
                    rule_id=rule.id,
                ))
            seen.add(rule.id)
    return results


def check_conditions(questions: List[Question], question_ids: Set[str]) -> List[ValidationIssue]:
    """Conditions must parse and must reference an existing question."""
    results: List[ValidationIssue] = []
    for q in questions:
        for rule in q.logic_rules or []:
            try:
                condition = try_parse_condition(rule.condition)
            except ConditionParseError as exc:
                results.append(_issue(
                    codes.INVALID_CONDITION,
                    Severity.WARNING,
                    f"Rule condition could not be parsed: {exc.reason}",
                    question_id=q.id,
                    rule_id=rule.id,
                    details={"condition": rule.condition, "position": exc.position},
                ))
                continue
            if condition is not None and condition.question_id not in question_ids:
                results.append(_issue(
                    codes.CONDITION_UNKNOWN_QUESTION,
                    Severity.WARNING,
                    f'Rule condition references non-existent question "{condition.question_id}"',
                    question_id=q.id,
                    rule_id=rule.id,
                    details={"referencedQuestionId": condition.question_id},
                ))
    return results


def check_conflicting_rules(questions: List[Question]) -> List[ValidationIssue]:
    """
    Rules on one question with the same trigger but different outcomes.

    Conditions are grouped by canonical form; blank conditions share the
    unconditional bucket. End rules count as the end sentinel target.
    """
    results: List[ValidationIssue] = []

    for q in questions:
        rules = q.logic_rules or []
        if len(rules) < 2:
            continue

        by_condition: Dict[str, list] = {}
        for rule in rules:
            by_condition.setdefault(condition_key(rule.condition), []).append(rule)

        for key, condition_rules in by_condition.items():
            if len(condition_rules) < 2:
                continue
            targets = list(dict.fromkeys(
                END_SENTINEL if r.action is RuleAction.END else (r.target_question_id or END_SENTINEL)
                for r in condition_rules
            ))
            if len(targets) > 1:
                shown = key or "(unconditional)"
                results.append(_issue(
                    codes.CONFLICTING_RULES,
                    Severity.WARNING,
                    f'Multiple rules with same condition "{shown}" have different targets',
                    question_id=q.id,
                    details={
                        "condition": key,
                        "targets": targets,
                        "ruleIds": [r.id for r in condition_rules],
                    },
                ))

    return results


# =========================================================================
# ENTRY POINT
# =========================================================================


@dataclass
class LogicAnalysis:
    graph: QuestionGraph
    reachable: Set[str]
    cycle_report: CycleReport
    issues: List[ValidationIssue] = field(default_factory=list)


def analyze_logic(questions: List[Question], settings: EngineSettings = DEFAULT_SETTINGS) -> LogicAnalysis:
    """Build the graph, run every logic check and keep the intermediate results."""
    graph = build_question_graph(questions)
    reachable = analyze_reachability(graph)
    cycle_report = detect_cycles(graph)
    analysis = LogicAnalysis(graph=graph, reachable=reachable, cycle_report=cycle_report)

    if not questions:
        return analysis

    question_ids = set(graph.nodes)
    analysis.issues.extend(check_missing_targets(graph, question_ids))
    analysis.issues.extend(check_rule_targets(questions))
    analysis.issues.extend(check_duplicate_rule_ids(questions))
    analysis.issues.extend(check_conditions(questions, question_ids))
    analysis.issues.extend(check_backwards_jumps(graph, cycle_report))
    analysis.issues.extend(check_unreachable_questions(graph, settings))
    analysis.issues.extend(check_conflicting_rules(questions))

    logger.debug(
        "Logic checks: %d questions, %d edges, %d reachable, %d loops, %d issues",
        len(graph.nodes), len(graph.edges), len(reachable), len(cycle_report.cycles), len(analysis.issues),
    )
    return analysis


def validate_survey_logic(
    questions: List[Question], settings: EngineSettings = DEFAULT_SETTINGS
) -> List[ValidationIssue]:
    """Main logic validation entry point. Empty surveys yield no logic issues."""
    return analyze_logic(questions, settings).issues
