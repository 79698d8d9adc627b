"""
Structured diagnostic events.

Suspicious-but-legal states found while scoring or classifying (all
dimension scores null, a score no band covers, ...) are reported as
DiagnosticEvent values through an injected observer instead of being
printed. Any callable taking a DiagnosticEvent is an observer.

Observers:
    LoggingObserver   - default; logs each event at its level (WARNING
                        unless the emitter says otherwise)
    CollectingObserver - keeps events in a list (tests, debug tooling)
    NullObserver       - drops everything
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Event codes
SCORES_ALL_NULL = "SCORES_ALL_NULL"
BANDS_ALL_ZERO = "BANDS_ALL_ZERO"
INDEX_DIST_ALL_ZERO = "INDEX_DIST_ALL_ZERO"
NO_BAND_MATCH = "NO_BAND_MATCH"
SCORING_CONFIG_PROBLEM = "SCORING_CONFIG_PROBLEM"
QUESTION_SKIPPED = "QUESTION_SKIPPED"


@dataclass(frozen=True)
class DiagnosticEvent:
    code: str
    message: str
    source: str = ""
    details: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    level: int = field(default=logging.WARNING, compare=False)


Observer = Callable[[DiagnosticEvent], None]


class LoggingObserver:
    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def __call__(self, event: DiagnosticEvent) -> None:
        self.log.log(event.level, "[%s] %s: %s", event.source or "surveyflow", event.code, event.message)


class CollectingObserver:
    def __init__(self) -> None:
        self.events: List[DiagnosticEvent] = []

    def __call__(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self.events]


class NullObserver:
    def __call__(self, event: DiagnosticEvent) -> None:
        return None


def resolve_observer(observer: Optional[Observer]) -> Observer:
    return observer if observer is not None else LoggingObserver()
