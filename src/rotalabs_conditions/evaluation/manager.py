"""Condition manager: the public entry point of the engine.

The manager owns the expression cache. Each distinct expression string is
parsed once and the resulting tree is reused for every later evaluation.
Failed parses are remembered as invalid entries (configurable), so a broken
expression in configuration is not re-parsed on every check.

The manager is safe to share between threads: cache reads are lock-free and
first-time parses are serialized per manager, so concurrent evaluations of a
new expression parse it exactly once.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from rotalabs_conditions.core.conditions import Condition
from rotalabs_conditions.core.config import EngineConfig
from rotalabs_conditions.core.subject import AttributeResolver, PermissionSubject
from rotalabs_conditions.parsing.parser import ConditionParser

logger = logging.getLogger(__name__)


class CacheEntry:
    """Result of a parse attempt stored in the expression cache.

    Uses __slots__ for memory efficiency.

    Attributes:
        condition: Parsed condition tree, or None if the expression is invalid.
    """

    __slots__ = ("condition",)

    def __init__(self, condition: Optional[Condition]):
        self.condition = condition

    @classmethod
    def parsed(cls, condition: Condition) -> "CacheEntry":
        return cls(condition)

    @classmethod
    def invalid(cls) -> "CacheEntry":
        return cls(None)

    @property
    def is_valid(self) -> bool:
        return self.condition is not None

    def __repr__(self) -> str:
        if self.condition is None:
            return "CacheEntry(invalid)"
        return f"CacheEntry({self.condition.describe()!r})"


class ConditionManager:
    """Parses, caches and evaluates condition expressions.

    Public operations never raise for malformed expressions: an invalid
    expression evaluates to False and has no description.

    Attributes:
        config: Engine configuration.
        _parser: Expression parser.
        _resolver: Attribute resolver, or None when attributes are unavailable.
        _cache: Expression string to cache entry.
        _lock: Guards cache insertion.
        _stats_lock: Guards counter updates.
        _statistics: Cache and evaluation counters.

    Examples:
        >>> manager = ConditionManager()
        >>> subject = StaticSubject(permissions=["vip"])
        >>> manager.evaluate(subject, "any [perm vip; perm staff]")
        True
    """

    __slots__ = ("config", "_parser", "_resolver", "_cache", "_lock", "_stats_lock", "_statistics")

    def __init__(
        self,
        resolver: Optional[AttributeResolver] = None,
        config: Optional[EngineConfig] = None,
        parser: Optional[ConditionParser] = None,
    ):
        """Initialize condition manager.

        Args:
            resolver: Attribute resolver. Attribute conditions evaluate to
                False while no resolver is set.
            config: Engine configuration (defaults apply if omitted).
            parser: Parser to use instead of one built from ``config``.
        """
        self.config = config or EngineConfig()
        self._parser = parser or self._build_parser(self.config)
        self._resolver = resolver
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._statistics = {"hits": 0, "misses": 0, "parse_failures": 0, "evaluation_errors": 0}

        logger.info(
            "Initialized ConditionManager",
            extra={"max_depth": self.config.max_depth, "attributes_available": resolver is not None},
        )

    @staticmethod
    def _build_parser(config: EngineConfig) -> ConditionParser:
        return ConditionParser(
            max_depth=config.max_depth,
            attribute_delimiter=config.attribute_delimiter,
        )

    @property
    def attribute_resolution_available(self) -> bool:
        """Whether attribute conditions can currently be resolved."""
        return self._resolver is not None

    def set_attribute_resolver(self, resolver: Optional[AttributeResolver]) -> None:
        """Install or remove the attribute resolver.

        Cached trees stay valid: the resolver is supplied at evaluation time.
        """
        self._resolver = resolver
        logger.info(f"Attribute resolution {'enabled' if resolver is not None else 'disabled'}")

    def evaluate(self, subject: PermissionSubject, expression: str) -> bool:
        """Evaluate an expression against a subject.

        Args:
            subject: Subject exposing ``has_permission(node)``.
            expression: Expression string.

        Returns:
            True if the expression parses and the subject satisfies it.
        """
        condition = self._get_or_parse(expression)
        if condition is None:
            return False

        try:
            return bool(condition.evaluate(subject, self._resolver))
        except Exception as e:
            self._record("evaluation_errors")
            logger.error(
                f"Error evaluating condition: {expression!r}",
                extra={"expression": expression, "error": str(e)},
                exc_info=True,
            )
            return False

    def evaluate_all(self, subject: PermissionSubject, expressions: Iterable[str]) -> bool:
        """Check that every expression holds (True for an empty list)."""
        return all(self.evaluate(subject, expr) for expr in expressions)

    def evaluate_any(self, subject: PermissionSubject, expressions: Iterable[str]) -> bool:
        """Check that at least one expression holds (False for an empty list)."""
        return any(self.evaluate(subject, expr) for expr in expressions)

    def is_valid_expression(self, expression: str) -> bool:
        """Check whether an expression parses."""
        return self._get_or_parse(expression) is not None

    def are_valid_expressions(self, expressions: Iterable[str]) -> bool:
        """Check whether every expression parses."""
        return all(self.is_valid_expression(expr) for expr in expressions)

    def describe(self, expression: str) -> Optional[str]:
        """Get a human readable description of an expression.

        Returns:
            Description of the parsed tree, or None if the expression is invalid.
        """
        condition = self._get_or_parse(expression)
        if condition is None:
            return None
        return condition.describe()

    def parse_condition(self, expression: str) -> Optional[Condition]:
        """Get the (cached) condition tree for an expression."""
        return self._get_or_parse(expression)

    def parse_conditions(self, expressions: Iterable[str]) -> List[Condition]:
        """Get condition trees for several expressions, skipping invalid ones."""
        conditions = []
        for expression in expressions:
            condition = self._get_or_parse(expression)
            if condition is not None:
                conditions.append(condition)
        return conditions

    def clear_cache(self) -> None:
        """Drop every cached entry, e.g. after a configuration reload."""
        with self._lock:
            self._cache.clear()
        logger.info("Condition cache cleared")

    def cache_size(self) -> int:
        """Get the number of cached entries (valid and invalid)."""
        return len(self._cache)

    def get_statistics(self) -> Dict[str, int]:
        """Get cache and evaluation counters.

        Counters are updated under a lock, so concurrent evaluations are
        all counted.
        """
        with self._stats_lock:
            stats = dict(self._statistics)
        stats["cache_size"] = self.cache_size()
        return stats

    def _record(self, counter: str) -> None:
        with self._stats_lock:
            self._statistics[counter] += 1

    def update_config(self, config: EngineConfig) -> None:
        """Hot-reload engine configuration.

        Rebuilds the parser and clears the cache, since parse results may
        differ under new settings.

        Args:
            config: New engine configuration.
        """
        logger.info("Updating engine configuration", extra=config.to_dict())
        with self._lock:
            self.config = config
            self._parser = self._build_parser(config)
            self._cache.clear()

    def _get_or_parse(self, expression: str) -> Optional[Condition]:
        """Look up an expression in the cache, parsing it on a miss."""
        entry = self._cache.get(expression) if isinstance(expression, str) else None
        if entry is not None:
            self._record("hits")
            return entry.condition

        with self._lock:
            # Another thread may have parsed it while we waited
            entry = self._cache.get(expression) if isinstance(expression, str) else None
            if entry is not None:
                self._record("hits")
                return entry.condition

            self._record("misses")
            condition = self._parser.parse(expression)

            if condition is None:
                self._record("parse_failures")
                if self.config.cache_invalid_expressions and isinstance(expression, str):
                    self._cache[expression] = CacheEntry.invalid()
                return None

            self._cache[expression] = CacheEntry.parsed(condition)
            logger.debug(
                "Cached condition",
                extra={"expression": expression, "cache_size": len(self._cache)},
            )
            return condition
