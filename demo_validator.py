#!/usr/bin/env python3
"""
Demo: Validate the example engagement survey, score one respondent and
write a flow diagram.
"""

import json

from surveyflow import compute_score_trace, validate_survey
from surveyflow.backends import DotMode, save_dot_file
from surveyflow.examples import build_example_engagement_survey, example_answers
from surveyflow.graph import build_question_graph
from surveyflow.logging_setup import configure_logging
from surveyflow.serialization import score_trace_to_dict
from surveyflow.validation import format_validation_message


def print_validation(result):
    print()
    print("=" * 70)
    print("SURVEY VALIDATION")
    print("=" * 70)
    print(f"  Valid:        {'YES' if result.is_valid else 'NO'}")
    print(f"  Can publish:  {'YES' if result.can_publish else 'NO'}")
    print(f"  Summary:      {format_validation_message(result)}")
    for name, summary in result.summary.items():
        print(f"    {name:<8} errors={summary.error_count} warnings={summary.warning_count} info={summary.info_count}")
    if result.issues:
        print()
        for i, issue in enumerate(result.issues, 1):
            where = f" [{issue.question_id}]" if issue.question_id else ""
            print(f"  {i}. {issue.severity.value.upper():<7} {issue.code}{where}: {issue.message}")
    print()


def print_trace(trace):
    print("=" * 70)
    print("SCORE TRACE")
    print("=" * 70)
    for c in trace.categories:
        band = c.band.label if c.band else "-"
        print(f"  {c.category_name:<12} {c.raw_score:g}/{c.max_possible_score:g} -> {c.normalized_score} ({band})")
    if trace.overall:
        band = trace.overall.index_band.label if trace.overall.index_band else "-"
        print(f"  Overall ({trace.meta.rollup_policy}): {trace.overall.score} ({band})")
    for error in trace.errors:
        print(f"  ! {error}")
    print()


def main():
    configure_logging()

    questions, score_config = build_example_engagement_survey()

    result = validate_survey(questions, score_config)
    print_validation(result)

    trace = compute_score_trace(questions, score_config, example_answers())
    print_trace(trace)

    with open("example_score_trace.json", "w", encoding="utf-8") as f:
        json.dump(score_trace_to_dict(trace), f, indent=2, sort_keys=True)
    print("Score trace exported to example_score_trace.json")

    graph = build_question_graph(questions)
    save_dot_file(graph, "survey_flow.dot", mode=DotMode.DETAILED, issues=result.issues)
    print("Flow diagram saved to survey_flow.dot (render: dot -Tpng survey_flow.dot -o survey_flow.png)")


if __name__ == "__main__":
    main()
