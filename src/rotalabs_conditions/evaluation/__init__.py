"""
Evaluation module for rotalabs-conditions.

This module provides the cached condition manager used to evaluate expressions.
"""

from rotalabs_conditions.evaluation.manager import CacheEntry, ConditionManager

__all__ = ["ConditionManager", "CacheEntry"]
