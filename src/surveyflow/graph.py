"""
Question flow graph.

Turns an ordered question list and each question's logic rules into a
directed graph. Construction never fails: dangling targets, bad
conditions and the like are left in place for the checkers to report.

Two adjacency views share one node set:
    - flow_adjacency(): next-question edges + skip + show (reachability)
    - skip_adjacency(): next-question edges + skip only (loop detection)
End edges are in neither view; they terminate instead of redirecting.
A question whose flow is unconditionally redirected (blank-condition
skip to a real question, or blank-condition end) has no next-question edge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from surveyflow.model import LogicRule, Question, RuleAction

END_SENTINEL = "__END__"


@dataclass
class QuestionNode:
    id: str
    order: int
    text: str
    rules: List[LogicRule] = field(default_factory=list)
    reachable: bool = False


@dataclass
class LogicEdge:
    """A rule-induced edge. `to` is END_SENTINEL for end rules."""

    from_id: str
    to: str
    rule: LogicRule
    type: RuleAction


@dataclass
class QuestionGraph:
    nodes: Dict[str, QuestionNode] = field(default_factory=dict)
    edges: List[LogicEdge] = field(default_factory=list)
    entry_node: Optional[str] = None
    exit_nodes: Set[str] = field(default_factory=set)

    @property
    def node_ids(self) -> List[str]:
        """Node ids in survey order."""
        return list(self.nodes)

    def order_of(self, node_id: str) -> Optional[int]:
        node = self.nodes.get(node_id)
        return node.order if node is not None else None

    def next_of(self, node_id: str) -> Optional[str]:
        """Id of the question that follows node_id in survey order."""
        node = self.nodes.get(node_id)
        ids = self.node_ids
        if node is not None and node.order < len(ids) - 1:
            return ids[node.order + 1]
        return None

    def falls_through(self, node_id: str) -> bool:
        """
        Whether normal flow can continue to the next question.

        An unconditional end rule, or an unconditional skip to an existing
        question, always overrides the default next-question step.
        """
        for edge in self.edges_from(node_id):
            if edge.rule.condition and edge.rule.condition.strip():
                continue
            if edge.type is RuleAction.END:
                return False
            if edge.type is RuleAction.SKIP and edge.to in self.nodes:
                return False
        return True

    def _adjacency(self, edge_types: Iterable[RuleAction]) -> Dict[str, List[str]]:
        wanted = set(edge_types)
        ids = self.node_ids
        adjacency: Dict[str, List[str]] = {node_id: [] for node_id in ids}

        for idx, node_id in enumerate(ids[:-1]):
            if self.falls_through(node_id):
                adjacency[node_id].append(ids[idx + 1])

        for edge in self.edges:
            if edge.type not in wanted or edge.to not in self.nodes:
                continue
            neighbors = adjacency[edge.from_id]
            if edge.to not in neighbors:
                neighbors.append(edge.to)

        return adjacency

    def flow_adjacency(self) -> Dict[str, List[str]]:
        return self._adjacency((RuleAction.SKIP, RuleAction.SHOW))

    def skip_adjacency(self) -> Dict[str, List[str]]:
        return self._adjacency((RuleAction.SKIP,))

    def edges_from(self, node_id: str) -> List[LogicEdge]:
        return [e for e in self.edges if e.from_id == node_id]


def build_question_graph(questions: List[Question]) -> QuestionGraph:
    """
    Build the directed graph for an ordered question list.

    Node order is list position. Only the first question starts out
    reachable; surveyflow.logic_validator.analyze_reachability marks the rest.
    When ids repeat, the first occurrence owns the node.
    """
    graph = QuestionGraph()

    for question in questions:
        if question.id in graph.nodes:
            continue
        graph.nodes[question.id] = QuestionNode(
            id=question.id,
            order=len(graph.nodes),
            text=question.text or "",
            rules=list(question.logic_rules or []),
            reachable=not graph.nodes,
        )

    for question in questions:
        for rule in question.logic_rules or []:
            if rule.action is RuleAction.END:
                graph.edges.append(LogicEdge(question.id, END_SENTINEL, rule, RuleAction.END))
            elif rule.target_question_id:
                graph.edges.append(LogicEdge(question.id, rule.target_question_id, rule, rule.action))

    if questions:
        graph.entry_node = questions[0].id
        graph.exit_nodes.add(questions[-1].id)
    for edge in graph.edges:
        if edge.type is RuleAction.END:
            graph.exit_nodes.add(edge.from_id)

    return graph
