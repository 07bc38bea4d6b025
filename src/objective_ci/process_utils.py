# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import shutil

# Bandit: subprocess usage is intentional; we provide a controlled wrapper around
# external tool execution, normalising arguments and disabling ``shell=True``.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

if TYPE_CHECKING:
    # Bandit: type-only import of subprocess metadata is part of the safe wrapper.
    from subprocess import CompletedProcess as _CompletedProcess  # nosec B404


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Exit statuses of every process in a pipeline, in pipeline order."""

    returncodes: tuple[int, ...]

    @property
    def returncode(self) -> int:
        """Return the status of the final process, as a shell pipeline would."""

        return self.returncodes[-1] if self.returncodes else 0


def _normalize_args(args: Sequence[str]) -> list[str]:
    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    capture_output: bool = False,
    text: bool = True,
) -> _CompletedProcess[Any]:
    """Execute *args* after normalising the executable path."""
    normalized = _normalize_args(args)
    # Bandit: commands are assembled from argument tokens; no shell expansion.
    completed: _CompletedProcess[Any] = subprocess.run(  # nosec B603
        normalized,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        check=False,
        capture_output=capture_output,
        text=text,
    )

    if check and completed.returncode != 0:
        raise SubprocessExecutionError(
            normalized,
            completed.returncode,
            completed.stdout if isinstance(completed.stdout, str) else None,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )

    return completed


def run_pipeline(
    commands: Sequence[Sequence[str]],
    *,
    cwd: Path | None = None,
    stdout: Path | None = None,
) -> PipelineResult:
    """Run ``commands`` connected stdout-to-stdin and wait for all of them.

    Args:
        commands: Argument lists, first producer to final consumer.
        cwd: Working directory shared by every process.
        stdout: File receiving the final process output; inherits the
            terminal when omitted.

    Returns:
        PipelineResult: Exit statuses of every stage.
    """

    normalized = [_normalize_args(command) for command in commands]
    sink: IO[bytes] | None = stdout.open("wb") if stdout is not None else None
    processes: list[subprocess.Popen[bytes]] = []
    try:
        upstream: IO[bytes] | None = None
        for index, args in enumerate(normalized):
            last = index == len(normalized) - 1
            process = subprocess.Popen(  # nosec B603
                args,
                cwd=str(cwd) if cwd is not None else None,
                stdin=upstream,
                stdout=sink if last else subprocess.PIPE,
            )
            if upstream is not None:
                # Let the producer receive SIGPIPE if the consumer exits early.
                upstream.close()
            upstream = process.stdout
            processes.append(process)
        returncodes = tuple(process.wait() for process in processes)
    finally:
        if sink is not None:
            sink.close()
    return PipelineResult(returncodes=returncodes)


__all__ = ["PipelineResult", "SubprocessExecutionError", "run_command", "run_pipeline"]
