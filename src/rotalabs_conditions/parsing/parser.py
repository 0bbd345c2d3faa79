"""Recursive descent parser for condition expressions.

Expression grammar (keywords are case-insensitive)::

    Expr      := AnyExpr | AllExpr | NotExpr | LeafExpr
    AnyExpr   := ("any" | "or") WS? "[" ExprList "]"
    AllExpr   := ("all" | "and") WS? "[" ExprList "]"
    NotExpr   := "not" WS Expr
    LeafExpr  := PermExpr | AttrExpr | NodeName
    PermExpr  := ("permission" | "perm") WS ["!"] NodeName | "!" NodeName
    AttrExpr  := [("placeholder" | "papi") WS] Token [Operator Value]
    ExprList  := Expr (";" Expr)*

Whitespace around brackets and separators is optional, so ``all[a;b]`` and
``all [ a ; b ]`` parse identically. Separators inside nested brackets
belong to the nested list.

Examples:
    >>> parser = ConditionParser()
    >>> parser.parse("all [perm vip; any [%level% >= 10; !muted]]").describe()
    'all [permission: vip; any [attribute: %level% >= 10; NOT permission: muted]]'
"""

import logging
import re
from typing import Iterable, List, Optional

from rotalabs_conditions.core.conditions import (
    AllCondition,
    AnyCondition,
    AttributeCondition,
    Condition,
    NotCondition,
    PermissionCondition,
    normalize_whitespace,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32
MAX_DEPTH_LIMIT = 128

_COMBINATOR = re.compile(r"(any|or|all|and)\s*\[", re.IGNORECASE)
_NOT = re.compile(r"not\s+", re.IGNORECASE)
_PERMISSION = re.compile(r"(permission|perm)\s+", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"(placeholder|papi)\s+", re.IGNORECASE)
_NODE_NAME = re.compile(r"[^\s\[\];]+")

_ALL_KEYWORDS = ("all", "and")
_RESERVED_WORDS = frozenset(
    ["any", "or", "all", "and", "not", "permission", "perm", "placeholder", "papi"]
)


class ConditionParseError(ValueError):
    """Raised when an expression cannot be parsed.

    Attributes:
        expression: The fragment that failed to parse.
        reason: Human readable failure reason.
    """

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{reason}: {expression!r}")


class ConditionParser:
    """Parses expression strings into condition trees.

    The parser is stateless apart from its settings and may be shared between
    threads.

    Attributes:
        max_depth: Maximum combinator/negation nesting depth.
        attribute_delimiter: Character wrapping bare attribute tokens.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, attribute_delimiter: str = "%"):
        if not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {max_depth}")
        self.max_depth = max_depth
        self.attribute_delimiter = attribute_delimiter

    def parse(self, expression: str) -> Optional[Condition]:
        """Parse an expression, returning None when it is invalid.

        Args:
            expression: Expression string.

        Returns:
            Condition tree, or None if the expression cannot be parsed.
        """
        try:
            return self.parse_strict(expression)
        except ConditionParseError as e:
            logger.warning(
                f"Failed to parse condition: {expression!r} - {e.reason}",
                extra={"expression": expression, "fragment": e.expression},
            )
            return None
        except RecursionError:
            logger.warning(
                "Failed to parse condition: expression nests too deeply for the interpreter stack",
                extra={"expression": expression},
            )
            return None

    def parse_strict(self, expression: str) -> Condition:
        """Parse an expression, raising on failure.

        Args:
            expression: Expression string.

        Returns:
            Condition tree.

        Raises:
            ConditionParseError: If the expression cannot be parsed.
        """
        if not isinstance(expression, str):
            raise ConditionParseError(repr(expression), "Expression must be a string")

        condition = self._parse_expression(expression, depth=1)
        logger.debug(
            "Parsed condition",
            extra={"expression": expression, "condition_type": condition.type.value},
        )
        return condition

    def parse_multiple(self, expressions: Iterable[str]) -> List[Condition]:
        """Parse several expressions, dropping the invalid ones."""
        conditions = []
        for expression in expressions:
            condition = self.parse(expression)
            if condition is not None:
                conditions.append(condition)
        return conditions

    def is_valid(self, expression: str) -> bool:
        """Check whether an expression parses."""
        return self.parse(expression) is not None

    def _parse_expression(self, expression: str, depth: int) -> Condition:
        if depth > self.max_depth:
            raise ConditionParseError(expression, f"Nesting deeper than {self.max_depth} levels")

        text = normalize_whitespace(expression)
        if not text:
            raise ConditionParseError(expression, "Empty expression")

        match = _COMBINATOR.match(text)
        if match:
            return self._parse_combinator(text, match, depth)

        match = _NOT.match(text)
        if match:
            inner = self._parse_expression(text[match.end():], depth + 1)
            return NotCondition(inner)

        return self._parse_leaf(text)

    def _parse_combinator(self, text: str, match: "re.Match[str]", depth: int) -> Condition:
        open_index = match.end() - 1
        close_index = _find_closing_bracket(text, open_index)
        if close_index is None:
            raise ConditionParseError(text, "Unmatched '['")
        if close_index != len(text) - 1:
            raise ConditionParseError(text, "Unexpected text after ']'")

        fragments = _split_top_level(text[open_index + 1:close_index])
        if not fragments:
            raise ConditionParseError(text, "Empty condition list")

        children = [self._parse_expression(fragment, depth + 1) for fragment in fragments]

        if match.group(1).lower() in _ALL_KEYWORDS:
            return AllCondition(tuple(children))
        return AnyCondition(tuple(children))

    def _parse_leaf(self, text: str) -> Condition:
        if "[" in text or "]" in text:
            raise ConditionParseError(text, "Unknown condition format")
        if text.lower() in _RESERVED_WORDS:
            raise ConditionParseError(text, "Missing operand after keyword")

        match = _PERMISSION.match(text)
        if match:
            return self._build_permission(text[match.end():], text)

        match = _ATTRIBUTE.match(text)
        if match:
            return self._build_attribute(text[match.end():], text)

        if text.startswith("!"):
            return self._build_permission(text, text)

        if self.attribute_delimiter and text.startswith(self.attribute_delimiter):
            return self._build_attribute(text, text)

        if _NODE_NAME.fullmatch(text):
            return PermissionCondition(text)

        raise ConditionParseError(text, "Unknown condition format")

    def _build_permission(self, body: str, text: str) -> Condition:
        try:
            return PermissionCondition.from_expression(body)
        except ValueError as e:
            raise ConditionParseError(text, str(e)) from e

    def _build_attribute(self, body: str, text: str) -> Condition:
        if ";" in body:
            raise ConditionParseError(text, "Unexpected ';' outside a condition list")
        try:
            return AttributeCondition.from_expression(body, self.attribute_delimiter)
        except ValueError as e:
            raise ConditionParseError(text, str(e)) from e


def _find_closing_bracket(text: str, open_index: int) -> Optional[int]:
    """Find the index of the bracket closing the one at ``open_index``."""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
    return None


def _split_top_level(content: str) -> List[str]:
    """Split a condition list on ``;`` separators outside nested brackets.

    Empty fragments (from ``a;;b`` or a trailing ``;``) are dropped.

    Raises:
        ConditionParseError: If the brackets in ``content`` are unbalanced.
    """
    fragments = []
    depth = 0
    start = 0
    for index, char in enumerate(content):
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth < 0:
                raise ConditionParseError(content, "Unmatched ']'")
        elif char == ";" and depth == 0:
            fragments.append(content[start:index])
            start = index + 1
    if depth != 0:
        raise ConditionParseError(content, "Unmatched '['")
    fragments.append(content[start:])

    return [f.strip() for f in fragments if f.strip()]
