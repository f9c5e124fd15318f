"""Structural diff engine: compares two SDK dumps of the same target."""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Callable

from public_api_diff.models import Change, ChangeType, Declaration, SDKDump

FIELD_SEPARATOR = "; "
VALUE_ARROW = " → "


def _describe_access(declaration: Declaration) -> str:
    return declaration.attributes.access_level.keyword


def _describe_list(values: list[str]) -> str:
    return ", ".join(values)


# (field label, value extractor); order is the order fields appear in descriptions
COMPARED_FIELDS: list[tuple[str, Callable[[Declaration], str]]] = [
    ("access", _describe_access),
    ("static", lambda d: str(d.attributes.is_static).lower()),
    ("mutating", lambda d: str(d.attributes.is_mutating).lower()),
    ("final", lambda d: str(d.attributes.is_final).lower()),
    ("generic signature", lambda d: d.signature.generic_signature),
    ("parameters", lambda d: f"({_describe_list(d.signature.parameters)})"),
    ("return type", lambda d: d.signature.return_type or ""),
    ("throwing", lambda d: str(d.signature.is_throwing).lower()),
    ("async", lambda d: str(d.signature.is_async).lower()),
    ("availability", lambda d: _describe_list(d.attributes.availability)),
    ("deprecated", lambda d: str(d.attributes.is_deprecated).lower()),
]


def _quote(value: str) -> str:
    return f"`{value.replace('`', '')}`"


def _content_key(declaration: Declaration) -> str:
    """Stable key of a declaration's content, independent of sibling order."""
    fields = declaration.model_dump(mode="json", exclude={"children", "qualified_path"})
    children = sorted(_content_key(child) for child in declaration.children)
    return json.dumps([fields, children], sort_keys=True)


class SDKDumpAnalyzer:
    """Computes the sorted list of changes between two dumps.

    Children are matched by ``(kind, name)``. Within such a group candidates
    are paired by exact signature first; a single leftover on each side is
    paired as a modification, anything else is reported as removals and
    additions. Matched pairs are always descended into.
    """

    def analyze(self, old: SDKDump, new: SDKDump) -> list[Change]:
        changes: list[Change] = []
        self._compare_children(old.root, new.root, changes)
        return sorted(changes, key=lambda change: change.sort_key)

    def _compare_children(self, old: Declaration, new: Declaration, changes: list[Change]) -> None:
        parent_name = ".".join(new.qualified_path)
        for old_child, new_child in self._pair_children(old.children, new.children):
            if new_child is None:
                changes.append(_removal(old_child, parent_name))
            elif old_child is None:
                changes.append(_addition(new_child, parent_name))
            else:
                modification = _modification(old_child, new_child, parent_name)
                if modification is not None:
                    changes.append(modification)
                self._compare_children(old_child, new_child, changes)

    @staticmethod
    def _pair_children(
        old_children: list[Declaration],
        new_children: list[Declaration],
    ) -> list[tuple[Declaration | None, Declaration | None]]:
        old_groups: dict[tuple[str, str], list[Declaration]] = defaultdict(list)
        new_groups: dict[tuple[str, str], list[Declaration]] = defaultdict(list)
        for child in old_children:
            old_groups[(child.kind.value, child.name)].append(child)
        for child in new_children:
            new_groups[(child.kind.value, child.name)].append(child)

        pairs: list[tuple[Declaration | None, Declaration | None]] = []
        for key in sorted(old_groups.keys() | new_groups.keys()):
            old_pending = sorted(old_groups.get(key, []), key=_content_key)
            new_pending = sorted(new_groups.get(key, []), key=_content_key)

            for old_child in list(old_pending):
                match = next((n for n in new_pending if n.disambiguator == old_child.disambiguator), None)
                if match is not None:
                    old_pending.remove(old_child)
                    new_pending.remove(match)
                    pairs.append((old_child, match))

            if len(old_pending) == 1 and len(new_pending) == 1:
                pairs.append((old_pending[0], new_pending[0]))
                continue
            # ambiguous overloads are not paired by similarity
            pairs.extend((old_child, None) for old_child in old_pending)
            pairs.extend((None, new_child) for new_child in new_pending)
        return pairs


def _removal(declaration: Declaration, parent_name: str) -> Change:
    return Change(
        change_type=ChangeType.REMOVAL,
        parent_name=parent_name,
        change_description=f"{_quote(declaration.render())} was removed",
        kind=declaration.kind,
    )


def _addition(declaration: Declaration, parent_name: str) -> Change:
    return Change(
        change_type=ChangeType.ADDITION,
        parent_name=parent_name,
        change_description=f"{_quote(declaration.render())} was added",
        kind=declaration.kind,
    )


def _modification(old: Declaration, new: Declaration, parent_name: str) -> Change | None:
    differences = []
    for label, extract in COMPARED_FIELDS:
        old_value, new_value = extract(old), extract(new)
        if old_value != new_value:
            differences.append(f"{label}: {_quote(old_value)}{VALUE_ARROW}{_quote(new_value)}")
    if not differences:
        return None
    return Change(
        change_type=ChangeType.MODIFICATION,
        parent_name=parent_name,
        change_description=f"{_quote(old.render())} was modified ({FIELD_SEPARATOR.join(differences)})",
        kind=new.kind,
    )
