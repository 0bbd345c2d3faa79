"""
rotalabs-conditions - Textual condition expressions for permission and attribute gating.

Compiles short boolean expressions such as
``all [permission lounge.enter; %level% >= 10]`` into immutable condition
trees, evaluates them against runtime subjects, and caches the compiled tree
per expression string.

https://rotalabs.ai
"""

__version__ = "0.1.0"

from rotalabs_conditions.core.config import ConditionGate, ConditionsConfig, EngineConfig
from rotalabs_conditions.core.conditions import (
    AllCondition,
    AnyCondition,
    AttributeCondition,
    Condition,
    ConditionType,
    NotCondition,
    PermissionCondition,
)
from rotalabs_conditions.core.operator import ComparisonOperator
from rotalabs_conditions.core.subject import (
    AttributeResolver,
    PermissionSubject,
    StaticSubject,
    static_attribute_resolver,
)
from rotalabs_conditions.evaluation.manager import CacheEntry, ConditionManager
from rotalabs_conditions.parsing.parser import ConditionParseError, ConditionParser

__all__ = [
    # Version
    "__version__",
    # Conditions
    "Condition",
    "ConditionType",
    "PermissionCondition",
    "AttributeCondition",
    "AnyCondition",
    "AllCondition",
    "NotCondition",
    "ComparisonOperator",
    # Subjects
    "PermissionSubject",
    "AttributeResolver",
    "StaticSubject",
    "static_attribute_resolver",
    # Parsing
    "ConditionParser",
    "ConditionParseError",
    # Evaluation
    "ConditionManager",
    "CacheEntry",
    # Configuration
    "EngineConfig",
    "ConditionGate",
    "ConditionsConfig",
]
