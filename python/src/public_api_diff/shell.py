"""Process execution used by the build and package-description steps."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol, Sequence

from public_api_diff.errors import ShellCommandError
from public_api_diff.logging import get_logger

log = get_logger(__name__)


class Shell(Protocol):
    """Runs an external command and returns its output."""

    def execute(self, command: Sequence[str], cwd: Path | None = None) -> str: ...


class SubprocessShell:
    """`Shell` backed by :func:`subprocess.run`; stderr is folded into the output."""

    def execute(self, command: Sequence[str], cwd: Path | None = None) -> str:
        log.debug("shell_execute", command=" ".join(command), cwd=str(cwd) if cwd else None)
        try:
            completed = subprocess.run(
                list(command),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ShellCommandError(command, returncode=-1, output=str(exc)) from exc
        if completed.returncode != 0:
            raise ShellCommandError(command, completed.returncode, completed.stdout)
        return completed.stdout
