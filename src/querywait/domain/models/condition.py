"""Condition model - predicate over the number of records a query returned"""

import re
from dataclasses import dataclass
from enum import Enum

from querywait.domain.errors import InvalidConditionError


class ConditionKind(str, Enum):
    """Comparison applied to the record count"""

    EXACT = "count"
    AT_LEAST = "count-gte"
    GREATER_THAN = "count-gt"
    AT_MOST = "count-lte"
    LESS_THAN = "count-lt"
    ANY = "any"
    NONE = "none"


_NUMERIC_KINDS = {
    ConditionKind.EXACT,
    ConditionKind.AT_LEAST,
    ConditionKind.GREATER_THAN,
    ConditionKind.AT_MOST,
    ConditionKind.LESS_THAN,
}

_COUNT_PATTERN = re.compile(r"(count(?:-gte|-gt|-lte|-lt)?)=([0-9]+)")


@dataclass(frozen=True)
class Condition:
    """Success condition for a wait"""

    kind: ConditionKind
    value: int = 0

    def __post_init__(self):
        """Validate condition data"""
        if self.value < 0:
            raise InvalidConditionError(str(self.value), "value must be non-negative")
        if self.kind not in _NUMERIC_KINDS and self.value != 0:
            raise InvalidConditionError(self.kind.value, "takes no value")

    def satisfied_by(self, count: int) -> bool:
        """Check whether a record count satisfies the condition"""
        if self.kind is ConditionKind.EXACT:
            return count == self.value
        if self.kind is ConditionKind.AT_LEAST:
            return count >= self.value
        if self.kind is ConditionKind.GREATER_THAN:
            return count > self.value
        if self.kind is ConditionKind.AT_MOST:
            return count <= self.value
        if self.kind is ConditionKind.LESS_THAN:
            return count < self.value
        if self.kind is ConditionKind.ANY:
            return count > 0
        return count == 0

    def __str__(self) -> str:
        if self.kind in _NUMERIC_KINDS:
            return f"{self.kind.value}={self.value}"
        return self.kind.value


def parse_condition(text: str) -> Condition:
    """Parse a condition string

    Supported forms: ``count=N``, ``count-gte=N``, ``count-gt=N``,
    ``count-lte=N``, ``count-lt=N``, ``any``, ``none``.

    Args:
        text: Condition string, matched exactly (no trimming or case folding)

    Returns:
        Parsed Condition

    Raises:
        InvalidConditionError: If the text is not a valid condition
    """
    if not text:
        raise InvalidConditionError(text, "condition cannot be empty")
    if text == ConditionKind.ANY.value:
        return Condition(ConditionKind.ANY)
    if text == ConditionKind.NONE.value:
        return Condition(ConditionKind.NONE)

    match = _COUNT_PATTERN.fullmatch(text)
    if match is None:
        raise InvalidConditionError(
            text,
            "expected one of count=N, count-gte=N, count-gt=N, count-lte=N, count-lt=N, any, none",
        )
    return Condition(ConditionKind(match.group(1)), int(match.group(2)))
