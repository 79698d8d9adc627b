"""
Survey Flow Validation & Scoring Engine

Pure, synchronous analysis of survey questionnaires:
    - Question flow as a directed graph (reachability, loops, rule conflicts)
    - Scoring configuration checks (bands, categories, weights)
    - Per-respondent score traces
    - Analytics readiness classification

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Question rendering
    - Persistence or transactions
    - HTTP transport or authentication

Callers hand in snapshots and get freshly allocated results back.
Nothing is cached and nothing is mutated.
"""

from surveyflow.validation import validate_survey
from surveyflow.scoring import compute_score_trace
from surveyflow.analytics_state import classify_analytics_state

__version__ = "0.1.0"

__all__ = ["validate_survey", "compute_score_trace", "classify_analytics_state"]
