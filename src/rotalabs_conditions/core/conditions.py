"""Condition tree node types.

A parsed expression is a tree built from five immutable node types:

- ``PermissionCondition`` - checks a permission node on the subject
- ``AttributeCondition`` - checks an externally resolved attribute
- ``AnyCondition`` - OR over its children
- ``AllCondition`` - AND over its children
- ``NotCondition`` - negates a single child

Every node exposes ``evaluate(subject, resolver)`` and ``describe()``. Nodes
are frozen dataclasses holding tuples, so a tree can be shared between
threads and evaluated concurrently against different subjects.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from rotalabs_conditions.core.operator import ComparisonOperator
from rotalabs_conditions.core.subject import AttributeResolver, PermissionSubject

_INVALID_NODE_CHARS = re.compile(r"[\s\[\];]")
_WHITESPACE = re.compile(r"\s+")


class ConditionType(str, Enum):
    """Tag identifying the variant of a condition node."""

    PERMISSION = "permission"
    ATTRIBUTE = "attribute"
    ANY = "any"
    ALL = "all"
    NOT = "not"


def normalize_whitespace(text: str) -> str:
    """Trim a string and collapse internal whitespace runs to one space."""
    return _WHITESPACE.sub(" ", text.strip())


@dataclass(frozen=True)
class PermissionCondition:
    """Checks whether the subject holds a permission node.

    Attributes:
        node: Permission node name, e.g. ``essentials.fly``.
        negate: Whether the result is inverted (``!node``).
    """

    node: str
    negate: bool = False

    def __post_init__(self):
        if not self.node:
            raise ValueError("Permission node must not be empty")
        if _INVALID_NODE_CHARS.search(self.node):
            raise ValueError(f"Invalid permission node: {self.node!r}")

    @property
    def type(self) -> ConditionType:
        return ConditionType.PERMISSION

    @classmethod
    def from_expression(cls, expression: str) -> "PermissionCondition":
        """Build a permission condition from ``node`` or ``!node``."""
        text = expression.strip()
        if text.startswith("!"):
            return cls(text[1:].strip(), negate=True)
        return cls(text)

    def evaluate(self, subject: PermissionSubject, resolver: Optional[AttributeResolver] = None) -> bool:
        has_permission = bool(subject.has_permission(self.node))
        return not has_permission if self.negate else has_permission

    def describe(self) -> str:
        prefix = "NOT " if self.negate else ""
        return f"{prefix}permission: {self.node}"


@dataclass(frozen=True)
class AttributeCondition:
    """Checks an externally resolved attribute.

    Without an operator the condition only checks that the attribute is
    defined: the resolved value must be non-empty and differ from the token.
    With an operator the resolved value is compared against ``expected``.

    Attributes:
        token: Attribute token as written in the expression, e.g. ``%level%``.
        operator: Comparison operator, or None for an existence check.
        expected: Expected value, or None for an existence check.
    """

    token: str
    operator: Optional[ComparisonOperator] = None
    expected: Optional[str] = None

    def __post_init__(self):
        if not self.token:
            raise ValueError("Attribute token must not be empty")

    @property
    def type(self) -> ConditionType:
        return ConditionType.ATTRIBUTE

    @property
    def is_existence_check(self) -> bool:
        return self.operator is None or self.expected is None

    @classmethod
    def from_expression(cls, expression: str, delimiter: str = "%") -> "AttributeCondition":
        """Build an attribute condition from ``token [op value]``.

        The leftmost operator symbol is used, preferring the longest symbol
        at that position. When the expression starts with ``delimiter`` the
        search begins after the closing delimiter, so operator characters
        inside a token never split it.

        Args:
            expression: Text such as ``%level% >= 10`` or ``%guild%``.
            delimiter: Character that wraps attribute tokens.

        Returns:
            Parsed attribute condition.

        Raises:
            ValueError: If no token precedes the operator.
        """
        text = normalize_whitespace(expression)

        search_from = 0
        if delimiter and text.startswith(delimiter):
            closing = text.find(delimiter, len(delimiter))
            if closing != -1:
                search_from = closing + len(delimiter)

        match = ComparisonOperator.pattern().search(text, search_from)
        if match is None:
            return cls(text)

        token = text[: match.start()].strip()
        expected = text[match.end():].strip()
        return cls(token, ComparisonOperator(match.group(1)), expected)

    def evaluate(self, subject: PermissionSubject, resolver: Optional[AttributeResolver] = None) -> bool:
        if resolver is None:
            return False

        actual = resolver(subject, self.token)
        if actual is None:
            actual = ""

        if self.is_existence_check:
            return actual != "" and actual != self.token

        return self.operator.compare(actual, self.expected)

    def describe(self) -> str:
        if self.is_existence_check:
            return f"attribute exists: {self.token}"
        return f"attribute: {self.token} {self.operator.symbol} {self.expected}"


@dataclass(frozen=True)
class AllCondition:
    """True when every child condition is true (AND)."""

    conditions: Tuple["Condition", ...]

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValueError("all requires at least one condition")

    @property
    def type(self) -> ConditionType:
        return ConditionType.ALL

    @classmethod
    def of(cls, *conditions: "Condition") -> "AllCondition":
        return cls(conditions)

    def evaluate(self, subject: PermissionSubject, resolver: Optional[AttributeResolver] = None) -> bool:
        # Short-circuit: stop at first False
        return all(c.evaluate(subject, resolver) for c in self.conditions)

    def describe(self) -> str:
        return f"all [{'; '.join(c.describe() for c in self.conditions)}]"


@dataclass(frozen=True)
class AnyCondition:
    """True when at least one child condition is true (OR)."""

    conditions: Tuple["Condition", ...]

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValueError("any requires at least one condition")

    @property
    def type(self) -> ConditionType:
        return ConditionType.ANY

    @classmethod
    def of(cls, *conditions: "Condition") -> "AnyCondition":
        return cls(conditions)

    def evaluate(self, subject: PermissionSubject, resolver: Optional[AttributeResolver] = None) -> bool:
        # Short-circuit: stop at first True
        return any(c.evaluate(subject, resolver) for c in self.conditions)

    def describe(self) -> str:
        return f"any [{'; '.join(c.describe() for c in self.conditions)}]"


@dataclass(frozen=True)
class NotCondition:
    """True when the wrapped condition is false."""

    condition: "Condition"

    @property
    def type(self) -> ConditionType:
        return ConditionType.NOT

    @classmethod
    def of(cls, condition: "Condition") -> "NotCondition":
        return cls(condition)

    def evaluate(self, subject: PermissionSubject, resolver: Optional[AttributeResolver] = None) -> bool:
        return not self.condition.evaluate(subject, resolver)

    def describe(self) -> str:
        return f"not {self.condition.describe()}"


Condition = Union[
    PermissionCondition,
    AttributeCondition,
    AnyCondition,
    AllCondition,
    NotCondition,
]
