"""
Overall-score rollup policies.

How per-category scores combine into one overall score is a product
decision, so it is a named policy rather than a fixed formula:

    mean      - mean of the normalized scores of categories that have at
                least one answered question
    weighted  - total raw score over total possible score, across categories
    none      - no overall score; per-category results only

A policy is any callable taking the category breakdowns and returning an
integer score in [0, 100] or None.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from surveyflow.scoring import CategoryBreakdown

RollupPolicy = Callable[[Sequence["CategoryBreakdown"]], Optional[int]]


class UnknownRollupPolicyError(KeyError):
    """Raised for a rollup policy name that is not registered."""


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, round_half_up(value)))


def normalize_score(raw: float, maximum: float) -> int:
    """
    round(100 * raw / maximum), clamped to [0, 100].

    A zero (or negative) maximum yields 0, never NaN.
    """
    if not maximum or maximum <= 0:
        return 0
    value = 100 * raw / maximum
    if not math.isfinite(value):
        return 0
    return clamp_score(value)


def mean_rollup(categories: Sequence["CategoryBreakdown"]) -> Optional[int]:
    scored = [c.normalized_score for c in categories if c.question_count > 0]
    if not scored:
        return None
    return clamp_score(sum(scored) / len(scored))


def weighted_rollup(categories: Sequence["CategoryBreakdown"]) -> Optional[int]:
    scored = [c for c in categories if c.question_count > 0]
    if not scored:
        return None
    return normalize_score(
        sum(c.raw_score for c in scored),
        sum(c.max_possible_score for c in scored),
    )


def no_rollup(categories: Sequence["CategoryBreakdown"]) -> Optional[int]:
    return None


ROLLUP_POLICIES: Dict[str, RollupPolicy] = {
    "mean": mean_rollup,
    "weighted": weighted_rollup,
    "none": no_rollup,
}


def get_rollup_policy(name: str) -> RollupPolicy:
    try:
        return ROLLUP_POLICIES[name]
    except KeyError:
        raise UnknownRollupPolicyError(
            f"Unknown rollup policy {name!r}; expected one of {', '.join(ROLLUP_POLICIES)}"
        ) from None
