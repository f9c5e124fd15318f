"""Reads Swift package metadata through ``swift package describe``."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from public_api_diff.models import PackageDescription

if TYPE_CHECKING:
    from public_api_diff.shell import Shell

PACKAGE_MANIFEST = "Package.swift"


def is_swift_package(project_dir: Path) -> bool:
    return (project_dir / PACKAGE_MANIFEST).is_file()


def describe_package(shell: Shell, project_dir: Path) -> PackageDescription:
    """Describe the package at ``project_dir``.

    Args:
        shell: Shell used to invoke the Swift toolchain.
        project_dir: Directory holding ``Package.swift``.

    Returns:
        The parsed package description.

    Raises:
        ShellCommandError: The describe command failed.
        ValueError: The command output holds no valid package description.
    """
    output = shell.execute(["swift", "package", "describe", "--type", "json"], cwd=project_dir)
    # resolution progress lines may precede the JSON document
    start = output.index("{")
    return PackageDescription.model_validate_json(output[start:])
