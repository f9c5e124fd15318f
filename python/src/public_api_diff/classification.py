"""Breaking vs. informational classification of a `Change`.

Classification only looks at the change type and description, so it works
on changes read back from the machine-readable output as well.
"""

from __future__ import annotations

import re
from enum import IntEnum

from public_api_diff.models import AccessLevel, Change, ChangeType

_RENDERED = re.compile(r"^`(?P<declaration>[^`]*)`")
_FIELD = re.compile(r"(?P<label>[a-z][a-z ]*): `(?P<old>[^`]*)` → `(?P<new>[^`]*)`")

INFORMATIONAL_FIELDS = frozenset({"availability", "deprecated"})

REMOVED_TARGET = Change.removed_target().change_description
TARGET_ERROR_PREFIX = "Target could not be analyzed"


class Severity(IntEnum):
    """How a change affects existing consumers."""

    INFORMATIONAL = 0
    BREAKING = 1


def modified_fields(change: Change) -> dict[str, tuple[str, str]]:
    """Return ``{field: (old, new)}`` encoded in a modification description."""
    return {m.group("label"): (m.group("old"), m.group("new")) for m in _FIELD.finditer(change.change_description)}


def _leading_access(description: str) -> AccessLevel | None:
    match = _RENDERED.match(description)
    if match is None:
        return None
    keyword = match.group("declaration").split(" ", 1)[0]
    try:
        return AccessLevel.parse(keyword)
    except ValueError:
        return None


def _is_breaking_field(label: str, old: str, new: str) -> bool:
    if label in INFORMATIONAL_FIELDS:
        return False
    if label == "access":
        return AccessLevel.parse(new) < AccessLevel.parse(old)
    if label == "final":
        return new == "true"
    return True


def classify(change: Change) -> Severity:
    """Classify a change.

    - additions are never breaking;
    - removals are breaking when the removed declaration was public or open,
      and a removed target is always breaking;
    - modifications are breaking when access narrowed, the declaration became
      final, or any part of its signature changed. Availability and
      deprecation only changes are informational.
    """
    description = change.change_description
    if change.change_type is ChangeType.ADDITION:
        return Severity.INFORMATIONAL

    if change.change_type is ChangeType.REMOVAL:
        if description == REMOVED_TARGET:
            return Severity.BREAKING
        access = _leading_access(description)
        if access is None or access.is_public:
            return Severity.BREAKING
        return Severity.INFORMATIONAL

    if description.startswith(TARGET_ERROR_PREFIX):
        return Severity.BREAKING
    fields = modified_fields(change)
    if any(_is_breaking_field(label, old, new) for label, (old, new) in fields.items()):
        return Severity.BREAKING
    return Severity.INFORMATIONAL


def is_breaking(change: Change) -> bool:
    return classify(change) is Severity.BREAKING
