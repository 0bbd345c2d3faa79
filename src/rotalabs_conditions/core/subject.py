"""Subjects and attribute resolution.

Conditions are evaluated against a *subject*: any object that can answer
``has_permission(node)``. Attribute conditions additionally need an
*attribute resolver*, a callable mapping ``(subject, token)`` to the current
string value of that token. A resolver returns an empty string or the token
itself when it cannot resolve the attribute.

``StaticSubject`` and ``static_attribute_resolver`` provide an in-memory
implementation of both capabilities for command line checks and tests.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol, runtime_checkable

AttributeResolver = Callable[[Any, str], Optional[str]]


@runtime_checkable
class PermissionSubject(Protocol):
    """Anything that can answer permission checks."""

    def has_permission(self, node: str) -> bool:
        ...


class StaticSubject:
    """Subject with a fixed permission set and attribute table.

    Uses __slots__ for memory efficiency.

    Attributes:
        name: Display name of the subject.
        permissions: Permission nodes the subject holds.
        attributes: Attribute token to value mapping, e.g. ``{"%level%": "12"}``.
    """

    __slots__ = ("name", "permissions", "attributes")

    def __init__(
        self,
        name: str = "subject",
        permissions: Optional[Iterable[str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ):
        self.name = name
        self.permissions = frozenset(permissions or ())
        self.attributes: Dict[str, str] = dict(attributes or {})

    def has_permission(self, node: str) -> bool:
        """Check whether the subject holds a permission node."""
        return node in self.permissions

    def get_attribute(self, token: str) -> Optional[str]:
        """Get the value of an attribute token, or None if unknown."""
        return self.attributes.get(token)

    def __repr__(self) -> str:
        return (
            f"StaticSubject(name={self.name!r}, permissions={sorted(self.permissions)!r}, "
            f"attributes={self.attributes!r})"
        )


def static_attribute_resolver(subject: Any, token: str) -> str:
    """Resolve a token from a subject's ``get_attribute`` method.

    Unknown tokens resolve to the token itself, mirroring how placeholder
    substitution leaves unknown markers untouched.

    Args:
        subject: Subject exposing ``get_attribute(token)``.
        token: Attribute token such as ``%level%``.

    Returns:
        Resolved value, or the unchanged token if unresolved.
    """
    getter = getattr(subject, "get_attribute", None)
    if getter is None:
        return token

    value = getter(token)
    if value is None:
        return token
    return str(value)


def parse_attribute_assignments(assignments: Iterable[str]) -> Dict[str, str]:
    """Parse ``TOKEN=VALUE`` strings into an attribute table.

    Args:
        assignments: Strings of the form ``%level%=12``.

    Returns:
        Mapping of token to value.

    Raises:
        ValueError: If an assignment has no ``=`` or an empty token.
    """
    attributes: Dict[str, str] = {}
    for item in assignments:
        token, sep, value = item.partition("=")
        token = token.strip()
        if not sep or not token:
            raise ValueError(f"Invalid attribute assignment: {item!r}. Expected TOKEN=VALUE")
        attributes[token] = value.strip()
    return attributes
