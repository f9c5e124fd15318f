"""
Structured exceptions for the public API diff pipeline.

Every error carries a stable integer code (see `ErrorCode`) that doubles as
the process exit status of the command line tool, so callers can tell a
build failure from a missing dump without string matching.

Fatal errors abort a pipeline run before any report is produced:
- BuildError            : an external build step failed.
- NoTargetFoundError    : neither build produced a single dump.
- LibraryAnalysisError  : package metadata could not be read.

Per-target errors only degrade the affected target:
- NoDumpProducedError   : the expected dump file is missing.
- DumpParseError        : the dump file is not a valid ABI tree.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Any, Mapping, Sequence


class ErrorCode(IntEnum):
    """Stable error codes; 0 and 1 are reserved for "no changes" / "changes"."""

    GENERIC = 2
    BUILD = 3
    NO_TARGET_FOUND = 4
    NO_DUMP_PRODUCED = 5
    DUMP_PARSE = 6
    LIBRARY_ANALYSIS = 7
    SHELL_COMMAND = 8
    INVALID_SOURCE = 9


class PublicApiDiffError(Exception):
    """
    Base class for all pipeline errors.

    Parameters
    ----------
    message : str
        Human-readable description.
    code : ErrorCode | int
        Stable code for programmatic handling.
    context : Mapping[str, Any] | None
        Optional structured fields, merged into log events.
    cause : BaseException | None
        Optional underlying exception; also set via `raise ... from ...`.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | int = ErrorCode.GENERIC,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.code: int = int(code)
        self.context: dict[str, Any] = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        tail = f" context={self.context}" if self.context else ""
        return f"[{self.code}] {self.message}{tail}"

    def to_dict(self) -> dict[str, Any]:
        """Structured view suitable for logs or JSON output."""
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.context:
            out["context"] = self.context
        return out


class ShellCommandError(PublicApiDiffError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, output: str = "") -> None:
        super().__init__(
            f"Command `{' '.join(command)}` failed with exit code {returncode}",
            code=ErrorCode.SHELL_COMMAND,
            context={"command": list(command), "returncode": returncode, "output": output[-2000:]},
        )
        self.returncode = returncode
        self.output = output


class BuildError(PublicApiDiffError):
    """Building a project source failed."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        scheme: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        context: dict[str, Any] = {}
        if source is not None:
            context["source"] = source
        if scheme is not None:
            context["scheme"] = scheme
        super().__init__(message, code=ErrorCode.BUILD, context=context, cause=cause)


class NoTargetFoundError(PublicApiDiffError):
    """Neither project version produced a dump for any target."""

    def __init__(self, message: str = "No targets found in either project version") -> None:
        super().__init__(message, code=ErrorCode.NO_TARGET_FOUND)


class NoDumpProducedError(PublicApiDiffError):
    """The expected dump artifact is missing after a successful build."""

    def __init__(self, target_name: str, path: Path) -> None:
        super().__init__(
            f"No ABI dump found for target `{target_name}` at {path}",
            code=ErrorCode.NO_DUMP_PRODUCED,
            context={"target": target_name, "path": str(path)},
        )
        self.target_name = target_name
        self.path = path


class DumpParseError(PublicApiDiffError):
    """A dump file exists but does not hold a valid ABI tree."""

    def __init__(self, path: Path, reason: str, *, cause: BaseException | None = None) -> None:
        super().__init__(
            f"Invalid ABI dump {path}: {reason}",
            code=ErrorCode.DUMP_PARSE,
            context={"path": str(path)},
            cause=cause,
        )
        self.path = path
        self.reason = reason


class LibraryAnalysisError(PublicApiDiffError):
    """The library products of a build could not be determined."""

    def __init__(self, message: str, *, project_dir: Path | None = None, cause: BaseException | None = None) -> None:
        context = {"project_dir": str(project_dir)} if project_dir is not None else None
        super().__init__(message, code=ErrorCode.LIBRARY_ANALYSIS, context=context, cause=cause)


class InvalidProjectSourceError(PublicApiDiffError):
    """A project source string could not be interpreted."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(
            f"Invalid project source {value!r}: {reason}",
            code=ErrorCode.INVALID_SOURCE,
            context={"value": value},
        )


__all__ = [
    "ErrorCode",
    "PublicApiDiffError",
    "ShellCommandError",
    "BuildError",
    "NoTargetFoundError",
    "NoDumpProducedError",
    "DumpParseError",
    "LibraryAnalysisError",
    "InvalidProjectSourceError",
]
