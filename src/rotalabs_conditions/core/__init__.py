"""Core module for rotalabs-conditions.

This module provides the condition node types, comparison operators,
subject capabilities and configuration classes.
"""

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
from rotalabs_conditions.core.subject import StaticSubject, static_attribute_resolver

__all__ = [
    "Condition",
    "ConditionType",
    "PermissionCondition",
    "AttributeCondition",
    "AnyCondition",
    "AllCondition",
    "NotCondition",
    "ComparisonOperator",
    "StaticSubject",
    "static_attribute_resolver",
    "EngineConfig",
    "ConditionGate",
    "ConditionsConfig",
]
