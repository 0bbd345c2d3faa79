"""Comparison operators for attribute conditions.

This module defines the six comparison symbols understood by the expression
grammar and the value comparison used when an attribute is compared against
an expected value. Comparison is numeric when both operands parse as floats
and falls back to plain string comparison otherwise.
"""

import operator
import re
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional


class ComparisonOperator(str, Enum):
    """Operators for attribute comparison."""

    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    EQ = "=="
    NE = "!="

    @property
    def symbol(self) -> str:
        """Get the textual symbol of this operator."""
        return self.value

    @classmethod
    def from_symbol(cls, symbol: str) -> Optional["ComparisonOperator"]:
        """Look up an operator by its symbol.

        Args:
            symbol: Operator symbol such as ">=".

        Returns:
            Matching operator or None if the symbol is unknown.
        """
        for op in cls:
            if op.value == symbol:
                return op
        return None

    @classmethod
    def all_symbols(cls) -> List[str]:
        """Get all operator symbols, longest first.

        Two-character symbols must be tried before their one-character
        prefixes so that ">=" is never read as ">" followed by "=".
        """
        return sorted((op.value for op in cls), key=len, reverse=True)

    @classmethod
    def pattern(cls) -> "re.Pattern[str]":
        """Get a compiled alternation matching any operator symbol."""
        return _operator_pattern()

    def compare(self, left: str, right: str) -> bool:
        """Compare two values with this operator.

        Both operands are parsed as floats first. If either side is not
        numeric the raw strings are compared instead, so ``==`` and ``!=``
        become plain string equality in that case.

        Args:
            left: Left operand (usually the resolved attribute value).
            right: Right operand (usually the expected value).

        Returns:
            True if the comparison holds, False otherwise.

        Examples:
            >>> ComparisonOperator.GT.compare("10", "9")
            True
            >>> ComparisonOperator.GT.compare("v2", "v10")
            True
        """
        op_func = _OPERATOR_FUNCS[self]

        left_num = _to_number(left)
        right_num = _to_number(right)
        if left_num is not None and right_num is not None:
            return op_func(left_num, right_num)

        return op_func(str(left), str(right))


_OPERATOR_FUNCS: Dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LE: operator.le,
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NE: operator.ne,
}


_NUMBER = re.compile(r"[+-]?(nan|inf|infinity|(\d+\.?\d*|\.\d+)(e[+-]?\d+)?)", re.IGNORECASE)


def _to_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    # float() also takes "1_0"; only plain decimal notation counts as numeric
    text = str(value).strip()
    if not _NUMBER.fullmatch(text):
        return None
    return float(text)


@lru_cache(maxsize=1)
def _operator_pattern() -> "re.Pattern[str]":
    # Alternation order matters: the regex engine takes the first alternative
    # that matches at a position.
    alternatives = "|".join(re.escape(s) for s in ComparisonOperator.all_symbols())
    return re.compile(f"({alternatives})")
