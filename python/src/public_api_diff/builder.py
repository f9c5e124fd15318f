"""Checks out and compiles one project version with library evolution enabled."""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from public_api_diff.errors import BuildError, ShellCommandError
from public_api_diff.logging import get_logger
from public_api_diff.models import LocalSource, RemoteSource
from public_api_diff.package_description import describe_package, is_swift_package

if TYPE_CHECKING:
    from public_api_diff.config import Settings
    from public_api_diff.models import ProjectSource
    from public_api_diff.shell import Shell

log = get_logger(__name__)


class ProjectBuilder:
    """Builds a `ProjectSource` into a directory holding its build products."""

    def __init__(self, shell: Shell, settings: Settings) -> None:
        self.shell = shell
        self.settings = settings

    def build(self, source: ProjectSource, scheme: str | None) -> Path:
        """Check out ``source`` into the working directory and build it.

        Args:
            source: Project version to build.
            scheme: Scheme to build; ``None`` builds the whole Swift package.

        Returns:
            The checked out project directory.

        Raises:
            BuildError: Checkout or compilation failed.
        """
        log.info("building_project", source=source.description, scheme=scheme)
        project_dir = self._checkout(source)
        try:
            build_scheme = scheme or self._package_scheme(project_dir)
            self.shell.execute(self.build_command(build_scheme), cwd=project_dir)
        except (ShellCommandError, ValueError) as exc:
            raise BuildError(
                f"Building {source.description} failed: {exc}",
                source=source.description,
                scheme=scheme,
                cause=exc,
            ) from exc
        log.info("project_built", source=source.description, project_dir=str(project_dir))
        return project_dir

    def build_command(self, scheme: str) -> list[str]:
        settings = self.settings
        return [
            "xcodebuild",
            "-scheme",
            scheme,
            "-configuration",
            settings.build_configuration,
            "-destination",
            settings.destination,
            "-derivedDataPath",
            settings.derived_data_path,
            "-skipPackagePluginValidation",
            "BUILD_LIBRARY_FOR_DISTRIBUTION=YES",
            "build",
        ]

    def _package_scheme(self, project_dir: Path) -> str:
        if not is_swift_package(project_dir):
            raise ValueError("a scheme is required to build a project that is not a Swift package")
        return f"{describe_package(self.shell, project_dir).name}-Package"

    def _checkout(self, source: ProjectSource) -> Path:
        destination = self.settings.working_directory / uuid.uuid4().hex
        destination.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(source, LocalSource):
            if not source.path.is_dir():
                raise BuildError(f"Project directory {source.path} does not exist", source=source.description)
            shutil.copytree(
                source.path,
                destination,
                ignore=shutil.ignore_patterns(self.settings.derived_data_path, ".swiftpm"),
            )
        elif isinstance(source, RemoteSource):
            try:
                self.shell.execute(
                    ["git", "clone", "--depth", "1", "--branch", source.branch, source.repository, str(destination)]
                )
            except ShellCommandError as exc:
                raise BuildError(
                    f"Cloning {source.description} failed", source=source.description, cause=exc
                ) from exc
        else:
            raise BuildError(f"Unsupported project source: {source!r}")
        return destination
