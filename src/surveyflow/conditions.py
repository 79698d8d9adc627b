"""
Condition mini-language for logic rules.

Rule conditions arrive as strings of the form:

    answer("<questionId>") <op> <literal>

with <op> one of == != < <= > >=. They are parsed into an immutable
Condition value, never matched ad hoc. A malformed string is an explicit
ConditionParseError, not an empty parse.

Literals:
    "Yes" / 'Yes'     -> str
    3, -8, 2.5        -> int / float
    true / false      -> bool
    Very satisfied    -> str (bare text up to the end of the condition)
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Set, Union

from surveyflow.model import LogicRule, RuleAction

logger = logging.getLogger(__name__)

LiteralValue = Union[int, float, str, bool]


class ComparisonOperator(Enum):
    """Comparison operators allowed in a rule condition."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    LESS_THAN = "<"
    LESS_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="


# Longest first so "<=" is not read as "<".
_OPERATOR_TOKENS = ("==", "!=", "<=", ">=", "<", ">")


class ConditionParseError(ValueError):
    """Raised when a condition string does not follow the mini-language."""

    def __init__(self, text: str, reason: str, position: int = 0):
        self.text = text
        self.reason = reason
        self.position = position
        super().__init__(f"Invalid condition {text!r} at {position}: {reason}")


@dataclass(frozen=True)
class Condition:
    """
    A parsed rule condition: answer(question_id) <operator> value.

    Immutable, so it can be used as a grouping key.
    """

    question_id: str
    operator: ComparisonOperator
    value: LiteralValue


class _ConditionScanner:
    """Single-pass scanner over one condition string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def fail(self, reason: str) -> ConditionParseError:
        return ConditionParseError(self.text, reason, self.pos)

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def expect(self, token: str) -> None:
        self.skip_ws()
        if not self.text.startswith(token, self.pos):
            raise self.fail(f"expected {token!r}")
        self.pos += len(token)

    def read_quoted(self) -> str:
        self.skip_ws()
        if self.pos >= len(self.text) or self.text[self.pos] not in ('"', "'"):
            raise self.fail("expected a quoted question id")
        quote = self.text[self.pos]
        self.pos += 1
        chars: List[str] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if ch == quote:
                self.pos += 1
                return "".join(chars)
            chars.append(ch)
            self.pos += 1
        raise self.fail("unterminated string")

    def read_operator(self) -> ComparisonOperator:
        self.skip_ws()
        for token in _OPERATOR_TOKENS:
            if self.text.startswith(token, self.pos):
                self.pos += len(token)
                return ComparisonOperator(token)
        raise self.fail("expected a comparison operator")

    def read_literal(self) -> LiteralValue:
        self.skip_ws()
        rest = self.text[self.pos:].strip()
        if not rest:
            raise self.fail("missing comparison value")
        if rest[0] in ('"', "'"):
            value = self.read_quoted()
            self.skip_ws()
            if self.pos != len(self.text):
                raise self.fail("unexpected text after quoted value")
            return value
        self.pos = len(self.text)
        return _coerce_bare_literal(rest)


_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?(?:\d+\.\d*|\.\d+)$")


def _coerce_bare_literal(raw: str) -> LiteralValue:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def parse_condition(text: str) -> Condition:
    """
    Parse a condition string.

    Args:
        text: Raw condition, e.g. 'answer("q1") >= 4'

    Returns:
        Condition

    Raises:
        ConditionParseError: If the string is empty or malformed
    """
    if text is None or not text.strip():
        raise ConditionParseError(text or "", "empty condition")

    scanner = _ConditionScanner(text)
    scanner.expect("answer")
    scanner.expect("(")
    question_id = scanner.read_quoted()
    if not question_id.strip():
        raise scanner.fail("empty question id")
    scanner.expect(")")
    operator = scanner.read_operator()
    value = scanner.read_literal()
    return Condition(question_id=question_id, operator=operator, value=value)


def try_parse_condition(text: Optional[str]) -> Optional[Condition]:
    """
    Parse a condition, treating blank text as "unconditional".

    Returns None for blank text. Malformed non-blank text still raises
    ConditionParseError.
    """
    if text is None or not text.strip():
        return None
    return parse_condition(text)


def format_literal(value: LiteralValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(value)


def format_condition(condition: Condition) -> str:
    """Render the canonical string form of a condition."""
    return (
        f"answer({json.dumps(condition.question_id)}) "
        f"{condition.operator.value} {format_literal(condition.value)}"
    )


def condition_key(text: Optional[str]) -> str:
    """
    Grouping key for a raw condition string.

    Parseable conditions collapse to their canonical form; blank text maps
    to "" (the unconditional bucket); anything else keeps its stripped text.
    """
    if text is None or not text.strip():
        return ""
    try:
        return format_condition(parse_condition(text))
    except ConditionParseError:
        return text.strip()


def sanitize_logic_rules(
    rules: Optional[Iterable[LogicRule]],
    question_id: str,
    valid_question_ids: Optional[Set[str]] = None,
) -> List[LogicRule]:
    """
    Return a cleaned copy of a question's rules.

    Dropped:
        - rules without an id, or repeating an earlier id
        - rules whose condition does not parse
        - conditions or targets naming unknown questions (when ids are given)
        - rules that target their own question

    Kept rules get a canonical condition string; end rules lose any target.
    """
    if not rules:
        return []

    check_ids = bool(valid_question_ids)
    seen: Set[str] = set()
    sanitized: List[LogicRule] = []

    for rule in rules:
        if rule is None or not rule.id or rule.id in seen:
            continue
        seen.add(rule.id)

        try:
            parsed = try_parse_condition(rule.condition)
        except ConditionParseError as exc:
            logger.debug("Dropping rule %s on %s: %s", rule.id, question_id, exc.reason)
            continue

        if parsed is not None and check_ids and parsed.question_id not in valid_question_ids:
            continue

        target = rule.target_question_id
        if rule.action is RuleAction.END:
            target = None
        elif target:
            if check_ids and target not in valid_question_ids:
                continue
            if target == question_id:
                continue

        sanitized.append(LogicRule(
            id=rule.id,
            condition=format_condition(parsed) if parsed is not None else "",
            action=rule.action,
            target_question_id=target,
        ))

    return sanitized
