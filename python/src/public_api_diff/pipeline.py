"""Orchestrates build, dump location, library comparison and per-target diffing."""

from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from public_api_diff.errors import DumpParseError, NoDumpProducedError, NoTargetFoundError
from public_api_diff.logging import get_logger
from public_api_diff.models import LIBRARY_KEY, Change, PipelineReport

if TYPE_CHECKING:
    from public_api_diff.abi_generator import ABIGenerator
    from public_api_diff.builder import ProjectBuilder
    from public_api_diff.library_analyzer import LibraryAnalyzer
    from public_api_diff.models import ChangeMap, ProjectSource
    from public_api_diff.output_generator import OutputGenerator
    from public_api_diff.sdk_dump_analyzer import SDKDumpAnalyzer
    from public_api_diff.sdk_dump_generator import SDKDumpGenerator

log = get_logger(__name__)


class _BuildOutput(NamedTuple):
    project_dir: Path
    dumps: dict[str, Path]
    failures: dict[str, str]

    @property
    def target_names(self) -> set[str]:
        return set(self.dumps) | set(self.failures)


class Pipeline:
    """Runs one comparison between an old and a new project version.

    The two build+locate phases run on two threads; per-target diffs run on a
    bounded pool. Results are merged into the change map once, in sorted
    target order, by the calling thread.

    Builds spend their time in external processes and overlap well. Diffing
    is pure Python and holds the GIL, so the diff pool bounds concurrency and
    overlaps dump file reads but does not scale with ``max_workers`` cores.
    """

    def __init__(
        self,
        old_source: ProjectSource,
        new_source: ProjectSource,
        scheme: str | None,
        project_builder: ProjectBuilder,
        abi_generator: ABIGenerator,
        library_analyzer: LibraryAnalyzer,
        sdk_dump_generator: SDKDumpGenerator,
        sdk_dump_analyzer: SDKDumpAnalyzer,
        output_generator: OutputGenerator,
        max_workers: int | None = None,
    ) -> None:
        self.old_source = old_source
        self.new_source = new_source
        self.scheme = scheme
        self.project_builder = project_builder
        self.abi_generator = abi_generator
        self.library_analyzer = library_analyzer
        self.sdk_dump_generator = sdk_dump_generator
        self.sdk_dump_analyzer = sdk_dump_analyzer
        self.output_generator = output_generator
        self.max_workers = max_workers

    def run(self) -> PipelineReport:
        """Run the comparison and render the report.

        Raises:
            BuildError: Either project failed to build; no report is produced.
            NoTargetFoundError: Neither build produced a dump.
            LibraryAnalysisError: Package metadata could not be read.
        """
        change_map, all_targets = self.collect_changes()
        text = self.output_generator.generate(change_map, all_targets, self.old_source, self.new_source)
        return PipelineReport(text=text, change_map=change_map, all_targets=all_targets)

    def collect_changes(self) -> tuple[ChangeMap, list[str]]:
        """Build both versions and compute the change map and sorted target list."""
        old, new = self._build_both()

        all_targets = sorted(old.target_names | new.target_names)
        if not all_targets:
            raise NoTargetFoundError()
        log.info("targets_collected", targets=all_targets)

        change_map: ChangeMap = {}
        library_changes = self.library_analyzer.analyze(old.project_dir, new.project_dir)
        if library_changes:
            change_map[LIBRARY_KEY] = library_changes

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(lambda target: self._analyze_target(target, old, new), all_targets))

        for target, changes in zip(all_targets, results):
            if changes:
                change_map[target] = changes
        return change_map, all_targets

    def _build_both(self) -> tuple[_BuildOutput, _BuildOutput]:
        executor = ThreadPoolExecutor(max_workers=2)
        try:
            old_future = executor.submit(self._build_and_locate, self.old_source)
            new_future = executor.submit(self._build_and_locate, self.new_source)
            done, _ = wait([old_future, new_future], return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
            return old_future.result(), new_future.result()
        finally:
            # a running build cannot be interrupted; do not wait for it after a failure
            executor.shutdown(wait=False, cancel_futures=True)

    def _build_and_locate(self, source: ProjectSource) -> _BuildOutput:
        project_dir = self.project_builder.build(source, self.scheme)
        try:
            outputs = self.abi_generator.generate(project_dir, self.scheme)
        except NoDumpProducedError as exc:
            log.warning("abi_file_missing", source=source.description, target=exc.target_name, path=str(exc.path))
            return _BuildOutput(project_dir, {}, {exc.target_name: exc.message})
        return _BuildOutput(project_dir, {o.target_name: o.abi_json_file_url for o in outputs}, {})

    def _analyze_target(self, target: str, old: _BuildOutput, new: _BuildOutput) -> list[Change]:
        failure = old.failures.get(target) or new.failures.get(target)
        if failure is not None:
            return [Change.target_error(failure)]

        old_file = old.dumps.get(target)
        new_file = new.dumps.get(target)
        if new_file is None:
            return [Change.removed_target()]
        if old_file is None:
            return [Change.added_target()]

        try:
            old_dump = self.sdk_dump_generator.generate(old_file, target)
            new_dump = self.sdk_dump_generator.generate(new_file, target)
        except (NoDumpProducedError, DumpParseError) as exc:
            log.warning("target_dump_unavailable", target=target, error=exc.message)
            return [Change.target_error(exc.message)]

        changes = self.sdk_dump_analyzer.analyze(old_dump, new_dump)
        log.info("target_analyzed", target=target, changes=len(changes))
        return changes
