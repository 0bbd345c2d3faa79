"""Pytest fixtures for rotalabs-conditions tests.

This module provides reusable subjects, resolvers and managers.
"""

import pytest
from typing import Dict, List

from rotalabs_conditions.core.subject import StaticSubject, static_attribute_resolver
from rotalabs_conditions.evaluation.manager import ConditionManager
from rotalabs_conditions.parsing.parser import ConditionParser


@pytest.fixture
def player() -> StaticSubject:
    """Create a subject with a few permissions and attributes.

    Permissions:
        - essentials.home
        - lounge.enter
    Attributes:
        - %player_level% = 12
        - %player_world% = survival
        - %version% = v2
    """
    return StaticSubject(
        name="Steve",
        permissions=["essentials.home", "lounge.enter"],
        attributes={
            "%player_level%": "12",
            "%player_world%": "survival",
            "%version%": "v2",
            "%empty%": "",
        },
    )


@pytest.fixture
def guest() -> StaticSubject:
    """Create a subject with no permissions and no attributes."""
    return StaticSubject(name="Guest")


@pytest.fixture
def parser() -> ConditionParser:
    """Create a parser with default settings."""
    return ConditionParser()


@pytest.fixture
def manager() -> ConditionManager:
    """Create a manager with the static attribute resolver installed."""
    return ConditionManager(resolver=static_attribute_resolver)


@pytest.fixture
def recording_resolver():
    """Factory fixture for resolvers that record the tokens they resolve.

    Example:
        resolver, calls = recording_resolver({"%a%": "1"})
    """
    def _create_resolver(values: Dict[str, str]):
        calls: List[str] = []

        def resolver(subject, token: str) -> str:
            calls.append(token)
            return values.get(token, token)

        return resolver, calls

    return _create_resolver
