"""
Graphviz DOT diagram generator for survey flow graphs.

Converts a QuestionGraph into Graphviz DOT text for debugging branch
logic. No Graphviz installation is needed to produce the text.

Supports two modes:
    - SIMPLE: Question ids/text and edges
    - DETAILED: Adds rule conditions on logic edges and issue markers

Styling:
    - unreachable questions are dashed and grey
    - exit questions (last question, or any question with an end rule)
      have a double border
    - end rules point at a shared END node
    - default next-question edges are dotted
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from surveyflow.graph import END_SENTINEL, QuestionGraph
from surveyflow.issues import Severity, ValidationIssue, preview
from surveyflow.logic_validator import analyze_reachability
from surveyflow.model import RuleAction


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"      # Just question flow
    DETAILED = "detailed"  # Include conditions, issue markers


_EDGE_COLORS = {
    RuleAction.SKIP: "blue",
    RuleAction.SHOW: "darkgreen",
    RuleAction.END: "red",
}


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _escape_dot_id(identifier: str) -> str:
    """Quote an identifier for DOT unless it is a plain name."""
    if not identifier:
        return '""'
    if identifier[0].isdigit() or not identifier.replace('_', '').isalnum():
        return _escape_dot_string(identifier)
    return identifier


def _issue_counts(issues: Iterable[ValidationIssue]) -> Dict[str, Dict[Severity, int]]:
    counts: Dict[str, Dict[Severity, int]] = {}
    for issue in issues:
        if issue.question_id is None:
            continue
        per_question = counts.setdefault(issue.question_id, {})
        per_question[issue.severity] = per_question.get(issue.severity, 0) + 1
    return counts


def generate_dot(
    graph: QuestionGraph,
    mode: DotMode = DotMode.SIMPLE,
    issues: Optional[List[ValidationIssue]] = None,
) -> str:
    """
    Generate Graphviz DOT for a question graph.

    Args:
        graph: Graph from surveyflow.graph.build_question_graph
        mode: Visualization mode (SIMPLE, DETAILED)
        issues: Validation issues to mark on nodes (DETAILED only)

    Returns:
        String containing DOT graph definition
    """
    reachable = analyze_reachability(graph)
    counts = _issue_counts(issues or []) if mode == DotMode.DETAILED else {}

    lines = []
    lines.append("digraph survey {")
    lines.append("  rankdir=TB;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    # =========================================================================
    # NODES
    # =========================================================================

    for node_id, node in graph.nodes.items():
        label = f"{node_id}: {preview(node.text, 40)}" if node.text else node_id

        if node_id in counts:
            marks = []
            errors = counts[node_id].get(Severity.ERROR, 0)
            warnings = counts[node_id].get(Severity.WARNING, 0)
            if errors:
                marks.append(f"{errors} error{'s' if errors != 1 else ''}")
            if warnings:
                marks.append(f"{warnings} warning{'s' if warnings != 1 else ''}")
            if marks:
                label = f"{label}\n[{', '.join(marks)}]"

        attrs = [f"label={_escape_dot_string(label)}"]
        if node_id not in reachable:
            attrs.append('style="filled,dashed"')
            attrs.append("fillcolor=lightgrey")
            attrs.append("fontcolor=grey40")
        if node_id in graph.exit_nodes:
            attrs.append("peripheries=2")
        if node_id == graph.entry_node:
            attrs.append("penwidth=2")
        lines.append(f"  {_escape_dot_id(node_id)} [{', '.join(attrs)}];")

    if any(e.type is RuleAction.END for e in graph.edges):
        lines.append(f'  {END_SENTINEL} [shape=doublecircle, fillcolor=salmon, label="END"];')

    # =========================================================================
    # EDGES
    # =========================================================================

    ids = graph.node_ids
    for idx, node_id in enumerate(ids[:-1]):
        if graph.falls_through(node_id):
            lines.append(
                f"  {_escape_dot_id(node_id)} -> {_escape_dot_id(ids[idx + 1])} [style=dotted, color=grey50];"
            )

    for edge in graph.edges:
        from_id = _escape_dot_id(edge.from_id)
        to_id = END_SENTINEL if edge.to == END_SENTINEL else _escape_dot_id(edge.to)

        attrs = [f"color={_EDGE_COLORS[edge.type]}"]
        if edge.to != END_SENTINEL and edge.to not in graph.nodes:
            attrs.append("style=dashed")

        if mode == DotMode.DETAILED:
            condition = (edge.rule.condition or "").strip() or "always"
            label = f"{edge.type.value}: {condition}"
            if len(label) > 40:
                label = label[:37] + "..."
            attrs.append(f"label={_escape_dot_string(label)}")

        lines.append(f"  {from_id} -> {to_id} [{', '.join(attrs)}];")

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(
    graph: QuestionGraph,
    filename: str,
    mode: DotMode = DotMode.SIMPLE,
    issues: Optional[List[ValidationIssue]] = None,
) -> None:
    """
    Generate DOT and save to file.

    Args:
        graph: Graph to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
        issues: Optional validation issues for DETAILED mode
    """
    dot = generate_dot(graph, mode=mode, issues=issues)
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
