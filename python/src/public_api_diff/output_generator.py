"""Report renderers over a change map. Rendering never reorders or filters."""

from __future__ import annotations

import json
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from public_api_diff.classification import is_breaking
from public_api_diff.models import LIBRARY_KEY, ChangeType

if TYPE_CHECKING:
    from public_api_diff.models import Change, ChangeMap, ProjectSource

_MARKERS = {
    ChangeType.ADDITION: "❇️",
    ChangeType.REMOVAL: "😶‍🌫️",
    ChangeType.MODIFICATION: "🔀",
}


class OutputFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"


class OutputGenerator(Protocol):
    def generate(
        self,
        change_map: ChangeMap,
        all_targets: list[str],
        old_source: ProjectSource,
        new_source: ProjectSource,
    ) -> str: ...


class MarkdownOutputGenerator:
    """Renders a Markdown report with one section per target."""

    def generate(
        self,
        change_map: ChangeMap,
        all_targets: list[str],
        old_source: ProjectSource,
        new_source: ProjectSource,
    ) -> str:
        total = sum(len(changes) for changes in change_map.values())
        breaking = sum(1 for changes in change_map.values() for change in changes if is_breaking(change))

        if total:
            title = f"# 👀 {total} public change{'s' if total != 1 else ''} detected ({breaking} breaking)"
        else:
            title = "# ✅ No changes detected"
        lines = [title, f"_Comparing `{new_source.description}` to `{old_source.description}`_", ""]

        library_changes = change_map.get(LIBRARY_KEY, [])
        if library_changes:
            lines += ["---", "## Libraries", *(self._render(change) for change in library_changes), ""]

        for target in all_targets:
            lines += ["---", f"## `{target}`"]
            changes = change_map.get(target, [])
            if changes:
                lines += [self._render(change) for change in changes]
            else:
                lines.append("_No changes_")
            lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _render(change: Change) -> str:
        scope = f"`{change.parent_name}` " if change.parent_name else ""
        suffix = " **(breaking)**" if is_breaking(change) else ""
        return f"- {_MARKERS[change.change_type]} {scope}{change.change_description}{suffix}"


class JsonOutputGenerator:
    """Renders the machine-readable change map."""

    def generate(
        self,
        change_map: ChangeMap,
        all_targets: list[str],
        old_source: ProjectSource,
        new_source: ProjectSource,
    ) -> str:
        keys = ([LIBRARY_KEY] if LIBRARY_KEY in change_map else []) + [t for t in all_targets if t in change_map]
        document = {
            "oldSource": old_source.description,
            "newSource": new_source.description,
            "targets": all_targets,
            "changes": {key: [change.to_output() for change in change_map[key]] for key in keys},
        }
        return json.dumps(document, indent=2, ensure_ascii=False)


def output_generator_for(output_format: OutputFormat | str) -> OutputGenerator:
    if output_format == OutputFormat.MARKDOWN:
        return MarkdownOutputGenerator()
    if output_format == OutputFormat.JSON:
        return JsonOutputGenerator()
    raise ValueError(f"Unknown output format: {output_format!r}")
