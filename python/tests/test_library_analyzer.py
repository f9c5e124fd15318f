"""Tests for public_api_diff.library_analyzer — library product comparison."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from public_api_diff.errors import LibraryAnalysisError, ShellCommandError
from public_api_diff.library_analyzer import LibraryAnalyzer
from public_api_diff.models import ChangeType


def _package(directory: Path, *libraries: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "Package.swift").write_text("// swift-tools-version:5.9\n", encoding="utf-8")
    (directory / "libraries.json").write_text(json.dumps(list(libraries)), encoding="utf-8")
    return directory


def _describe(command: list[str], cwd: Path | None) -> str:
    assert command == ["swift", "package", "describe", "--type", "json"]
    assert cwd is not None
    libraries = json.loads((cwd / "libraries.json").read_text(encoding="utf-8"))
    description = {
        "name": "Demo",
        "products": [{"name": name, "type": {"library": ["automatic"]}} for name in libraries]
        + [{"name": "demo-tool", "type": {"executable": None}}],
        "targets": [],
    }
    return "Fetching https://github.com/apple/swift-syntax.git\n" + json.dumps(description)


class TestLibraryAnalyzer:
    def test_added_and_removed_libraries(self, tmp_path: Path, shell_factory) -> None:
        old = _package(tmp_path / "old", "DemoCore", "DemoLegacy")
        new = _package(tmp_path / "new", "DemoCore", "DemoUI")
        shell = shell_factory(_describe)

        changes = LibraryAnalyzer(shell).analyze(old, new)

        assert [(c.change_type, c.parent_name, c.change_description) for c in changes] == [
            (ChangeType.ADDITION, "", "Library `DemoUI` was added"),
            (ChangeType.REMOVAL, "", "Library `DemoLegacy` was removed"),
        ]
        assert len(shell.commands) == 2

    def test_unchanged_libraries(self, tmp_path: Path, shell_factory) -> None:
        old = _package(tmp_path / "old", "DemoCore")
        new = _package(tmp_path / "new", "DemoCore")
        assert LibraryAnalyzer(shell_factory(_describe)).analyze(old, new) == []

    def test_projects_without_manifest(self, tmp_path: Path, shell_factory) -> None:
        shell = shell_factory()
        old = tmp_path / "old"
        new = tmp_path / "new"
        old.mkdir()
        new.mkdir()

        assert LibraryAnalyzer(shell).analyze(old, new) == []
        assert shell.commands == []

    def test_package_introduced(self, tmp_path: Path, shell_factory) -> None:
        old = tmp_path / "old"
        old.mkdir()
        new = _package(tmp_path / "new", "DemoCore")

        changes = LibraryAnalyzer(shell_factory(_describe)).analyze(old, new)

        assert [c.change_description for c in changes] == ["Library `DemoCore` was added"]

    def test_describe_failure(self, tmp_path: Path, shell_factory) -> None:
        def fail(command: list[str], cwd: Path | None) -> str:
            raise ShellCommandError(command, 1, "error: manifest parse error")

        old = _package(tmp_path / "old")
        new = _package(tmp_path / "new")

        with pytest.raises(LibraryAnalysisError) as excinfo:
            LibraryAnalyzer(shell_factory(fail)).analyze(old, new)
        assert isinstance(excinfo.value.__cause__, ShellCommandError)

    @pytest.mark.parametrize("output", ["no json here", '{"products": []}'])
    def test_unreadable_description(self, tmp_path: Path, shell_factory, output: str) -> None:
        old = _package(tmp_path / "old")
        new = _package(tmp_path / "new")

        with pytest.raises(LibraryAnalysisError):
            LibraryAnalyzer(shell_factory(lambda command, cwd: output)).analyze(old, new)
