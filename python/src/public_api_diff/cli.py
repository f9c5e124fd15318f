"""
public-api-diff - detect public API changes between two versions of a Swift
library or package.

Commands:
  run       Build both versions, locate their ABI dumps and compare them
  compare   Compare two existing ABI dump files without building

Sources are either a local directory or ``branch~repository-url``.

Exit codes:
  0  no changes detected
  1  changes detected (inspect the report to decide if they are breaking)
  2+ pipeline error, see `public_api_diff.errors.ErrorCode`

Examples:
  public-api-diff run --old 5.0.0~https://github.com/org/lib.git --new ./lib
  public-api-diff run --old ../lib-old --new ../lib-new --scheme MyLib --format json
  public-api-diff compare old/abi.json new/abi.json --target MyLib
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from public_api_diff.abi_generator import ABIGenerator
from public_api_diff.builder import ProjectBuilder
from public_api_diff.config import Settings, get_settings
from public_api_diff.errors import PublicApiDiffError
from public_api_diff.library_analyzer import LibraryAnalyzer
from public_api_diff.logging import bind_run_context, clear_run_context, get_logger, setup_logging
from public_api_diff.models import LocalSource, parse_project_source
from public_api_diff.output_generator import OutputFormat, output_generator_for
from public_api_diff.pipeline import Pipeline
from public_api_diff.sdk_dump_analyzer import SDKDumpAnalyzer
from public_api_diff.sdk_dump_generator import SDKDumpGenerator
from public_api_diff.shell import SubprocessShell

app = typer.Typer(
    name="public-api-diff",
    help="Detect public API changes between two versions of a Swift library or package",
    no_args_is_help=True,
    add_completion=False,
)

log = get_logger("public_api_diff.cli")

EXIT_NO_CHANGES = 0
EXIT_CHANGES = 1


def _configure(settings: Settings, log_level: Optional[str], log_format: Optional[str]) -> None:
    setup_logging(level=log_level or settings.log_level, log_format=log_format or settings.log_format)


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    log.info("report_written", path=str(output))


def _fail(exc: PublicApiDiffError) -> typer.Exit:
    log.error("pipeline_failed", **exc.to_dict())
    typer.echo(f"Error: {exc.message}", err=True)
    return typer.Exit(code=exc.code)


@app.command()
def run(
    old: str = typer.Option(..., "--old", help="Old version: local path or branch~repository-url"),
    new: str = typer.Option(..., "--new", help="New version: local path or branch~repository-url"),
    scheme: Optional[str] = typer.Option(None, "--scheme", help="Scheme to build; omit for Swift packages"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    output_format: OutputFormat = typer.Option(OutputFormat.MARKDOWN, "--format", case_sensitive=False),
    working_directory: Optional[Path] = typer.Option(
        None, "--working-directory", help="Checkout directory (default $PUBLIC_API_DIFF_WORKING_DIRECTORY)"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    log_format: Optional[str] = typer.Option(None, "--log-format"),
) -> None:
    """Build both versions and report their public API differences."""
    settings = get_settings()
    if working_directory is not None:
        settings = settings.model_copy(update={"working_directory": working_directory})
    _configure(settings, log_level, log_format)

    try:
        old_source = parse_project_source(old)
        new_source = parse_project_source(new)
        bind_run_context(old=old_source.description, new=new_source.description, scheme=scheme)

        shell = SubprocessShell()
        pipeline = Pipeline(
            old_source=old_source,
            new_source=new_source,
            scheme=scheme,
            project_builder=ProjectBuilder(shell, settings),
            abi_generator=ABIGenerator(settings),
            library_analyzer=LibraryAnalyzer(shell),
            sdk_dump_generator=SDKDumpGenerator(),
            sdk_dump_analyzer=SDKDumpAnalyzer(),
            output_generator=output_generator_for(output_format),
            max_workers=settings.diff_workers,
        )
        report = pipeline.run()
    except PublicApiDiffError as exc:
        raise _fail(exc) from exc
    finally:
        clear_run_context()

    _emit(report.text, output)
    raise typer.Exit(code=EXIT_CHANGES if report.has_changes else EXIT_NO_CHANGES)


@app.command()
def compare(
    old_dump: Path = typer.Argument(..., help="abi.json of the old version"),
    new_dump: Path = typer.Argument(..., help="abi.json of the new version"),
    target: Optional[str] = typer.Option(None, "--target", help="Target name (default: new dump's parent directory)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    output_format: OutputFormat = typer.Option(OutputFormat.MARKDOWN, "--format", case_sensitive=False),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    log_format: Optional[str] = typer.Option(None, "--log-format"),
) -> None:
    """Compare two ABI dump files of the same target."""
    _configure(get_settings(), log_level, log_format)
    target_name = target or new_dump.resolve().parent.stem or "Target"

    generator = SDKDumpGenerator()
    try:
        old_sdk_dump = generator.generate(old_dump, target_name)
        new_sdk_dump = generator.generate(new_dump, target_name)
    except PublicApiDiffError as exc:
        raise _fail(exc) from exc

    changes = SDKDumpAnalyzer().analyze(old_sdk_dump, new_sdk_dump)
    change_map = {target_name: changes} if changes else {}
    text = output_generator_for(output_format).generate(
        change_map,
        [target_name],
        LocalSource(path=old_dump),
        LocalSource(path=new_dump),
    )
    _emit(text, output)
    raise typer.Exit(code=EXIT_CHANGES if changes else EXIT_NO_CHANGES)


if __name__ == "__main__":  # pragma: no cover
    app()
