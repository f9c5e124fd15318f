"""Compares the library products two builds expose."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from public_api_diff.errors import LibraryAnalysisError, ShellCommandError
from public_api_diff.logging import get_logger
from public_api_diff.models import Change, ChangeType
from public_api_diff.package_description import describe_package, is_swift_package

if TYPE_CHECKING:
    from public_api_diff.shell import Shell

log = get_logger(__name__)


class LibraryAnalyzer:
    """Reports libraries that were added to or removed from a Swift package.

    Only package manifests declare distributable library products; a plain
    Xcode project on both sides yields no library changes.
    """

    def __init__(self, shell: Shell) -> None:
        self.shell = shell

    def analyze(self, old_project_dir: Path, new_project_dir: Path) -> list[Change]:
        """Compare library product names of two builds.

        Args:
            old_project_dir: Checkout of the old version.
            new_project_dir: Checkout of the new version.

        Returns:
            One change per library present on only one side, sorted.

        Raises:
            LibraryAnalysisError: A package could not be described.
        """
        old_libraries = self._libraries(old_project_dir)
        new_libraries = self._libraries(new_project_dir)
        if old_libraries is None and new_libraries is None:
            log.debug("library_analysis_skipped", reason="no package manifest")
            return []

        old_names = old_libraries or set()
        new_names = new_libraries or set()
        changes = [
            Change(change_type=ChangeType.REMOVAL, change_description=f"Library `{name}` was removed")
            for name in sorted(old_names - new_names)
        ]
        changes.extend(
            Change(change_type=ChangeType.ADDITION, change_description=f"Library `{name}` was added")
            for name in sorted(new_names - old_names)
        )
        log.info("libraries_compared", old=len(old_names), new=len(new_names), changes=len(changes))
        return sorted(changes, key=lambda change: change.sort_key)

    def _libraries(self, project_dir: Path) -> set[str] | None:
        if not is_swift_package(project_dir):
            return None
        try:
            description = describe_package(self.shell, project_dir)
        except (ShellCommandError, ValueError) as exc:
            raise LibraryAnalysisError(
                f"Unable to read package description of {project_dir}: {exc}",
                project_dir=project_dir,
                cause=exc,
            ) from exc
        return set(description.library_names)
