"""Tests for public_api_diff.cli — commands and exit codes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
import structlog
from typer.testing import CliRunner

from public_api_diff import cli
from public_api_diff.errors import BuildError, ErrorCode
from public_api_diff.models import Change, PipelineReport

runner = CliRunner()


class TestCompare:
    def test_changes_detected(
        self, tmp_path: Path, write_dump: Callable[..., Path], raw_decl: Callable[..., dict]
    ) -> None:
        old = write_dump("old/Core/abi.json", raw_decl("Struct", "Foo"))
        new = write_dump("new/Core/abi.json", raw_decl("Struct", "Foo"), raw_decl("Struct", "Bar"))
        report = tmp_path / "out/report.json"

        result = runner.invoke(cli.app, ["compare", str(old), str(new), "--format", "JSON", "-o", str(report)])

        assert result.exit_code == 1
        document = json.loads(report.read_text(encoding="utf-8"))
        assert document["targets"] == ["Core"]
        assert document["changes"]["Core"] == [
            {"changeType": "addition", "parentName": "", "changeDescription": "`public struct Bar` was added"}
        ]

    def test_no_changes(self, tmp_path: Path, write_dump: Callable[..., Path], raw_decl: Callable[..., dict]) -> None:
        old = write_dump("old/abi.json", raw_decl("Struct", "Foo"))
        new = write_dump("new/abi.json", raw_decl("Struct", "Foo"))
        report = tmp_path / "report.md"

        result = runner.invoke(cli.app, ["compare", str(old), str(new), "--target", "Core", "-o", str(report)])

        assert result.exit_code == 0
        text = report.read_text(encoding="utf-8")
        assert text.startswith("# ✅ No changes detected")
        assert "## `Core`" in text

    def test_missing_dump(self, tmp_path: Path, write_dump: Callable[..., Path]) -> None:
        new = write_dump("new/abi.json")
        result = runner.invoke(cli.app, ["compare", str(tmp_path / "old/abi.json"), str(new)])
        assert result.exit_code == ErrorCode.NO_DUMP_PRODUCED

    def test_invalid_dump(self, tmp_path: Path, write_dump: Callable[..., Path]) -> None:
        old = tmp_path / "old.json"
        old.write_text("[]", encoding="utf-8")
        new = write_dump("new/abi.json")
        result = runner.invoke(cli.app, ["compare", str(old), str(new)])
        assert result.exit_code == ErrorCode.DUMP_PARSE


class FakePipeline:
    outcome: Any = None
    kwargs: dict[str, Any] = {}

    def __init__(self, **kwargs: Any) -> None:
        FakePipeline.kwargs = kwargs

    def run(self) -> PipelineReport:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def fake_pipeline(monkeypatch: pytest.MonkeyPatch) -> type[FakePipeline]:
    monkeypatch.setattr(cli, "Pipeline", FakePipeline)
    FakePipeline.kwargs = {}
    return FakePipeline


class TestRun:
    def test_report_with_changes(self, tmp_path: Path, fake_pipeline: type[FakePipeline]) -> None:
        fake_pipeline.outcome = PipelineReport(
            text="# report", change_map={"Core": [Change.added_target()]}, all_targets=["Core"]
        )
        report = tmp_path / "report.md"

        result = runner.invoke(
            cli.app,
            [
                "run",
                "--old",
                "1.0.0~https://github.com/org/lib.git",
                "--new",
                str(tmp_path),
                "--scheme",
                "Core",
                "--working-directory",
                str(tmp_path / "work"),
                "-o",
                str(report),
            ],
        )

        assert result.exit_code == 1
        assert report.read_text(encoding="utf-8") == "# report\n"
        assert fake_pipeline.kwargs["scheme"] == "Core"
        assert fake_pipeline.kwargs["old_source"].branch == "1.0.0"
        assert fake_pipeline.kwargs["new_source"].path == tmp_path
        assert fake_pipeline.kwargs["project_builder"].settings.working_directory == tmp_path / "work"
        assert structlog.contextvars.get_contextvars() == {}

    def test_report_without_changes(self, tmp_path: Path, fake_pipeline: type[FakePipeline]) -> None:
        fake_pipeline.outcome = PipelineReport(text="# ok", change_map={}, all_targets=["Core"])
        report = tmp_path / "report.md"

        result = runner.invoke(cli.app, ["run", "--old", str(tmp_path), "--new", str(tmp_path), "-o", str(report)])

        assert result.exit_code == 0
        assert fake_pipeline.kwargs["scheme"] is None

    def test_pipeline_error(self, tmp_path: Path, fake_pipeline: type[FakePipeline]) -> None:
        fake_pipeline.outcome = BuildError("Building main failed", source="main")
        report = tmp_path / "report.md"

        result = runner.invoke(cli.app, ["run", "--old", str(tmp_path), "--new", str(tmp_path), "-o", str(report)])

        assert result.exit_code == ErrorCode.BUILD
        assert not report.exists()
        assert structlog.contextvars.get_contextvars() == {}

    def test_invalid_source(self, tmp_path: Path, fake_pipeline: type[FakePipeline]) -> None:
        result = runner.invoke(cli.app, ["run", "--old", str(tmp_path / "missing"), "--new", str(tmp_path)])
        assert result.exit_code == ErrorCode.INVALID_SOURCE
        assert fake_pipeline.kwargs == {}
