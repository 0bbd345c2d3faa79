"""
Parsing module for rotalabs-conditions.

This module turns expression strings into condition trees.
"""

from rotalabs_conditions.parsing.parser import ConditionParseError, ConditionParser

__all__ = ["ConditionParser", "ConditionParseError"]
