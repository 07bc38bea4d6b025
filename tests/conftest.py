# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from subprocess import CompletedProcess
from typing import Any

import pytest

from objective_ci.environment import CIEnvironment
from objective_ci.process_utils import PipelineResult


@pytest.fixture
def environment(tmp_path: Path) -> CIEnvironment:
    """Return an environment rooted at a temporary project without CocoaPods."""
    return CIEnvironment(root=tmp_path, exclusions=("vendor",), exec_prefix=("bundle", "exec"))


class RecordingRunner:
    """Stand in for ``run_command`` and ``run_pipeline`` while recording calls."""

    def __init__(self) -> None:
        self.commands: list[tuple[str, ...]] = []
        self.pipelines: list[tuple[tuple[str, ...], ...]] = []
        self.stdout: bytes = b""
        self.returncode = 0
        self.pipeline_returncode = 0
        self.pipeline_side_effect: Any = None

    def run_command(self, args: Sequence[str], **kwargs: Any) -> CompletedProcess[Any]:
        self.commands.append(tuple(args))
        stdout = self.stdout if kwargs.get("capture_output") else None
        stderr = b"" if kwargs.get("capture_output") else None
        return CompletedProcess(args=list(args), returncode=self.returncode, stdout=stdout, stderr=stderr)

    def run_pipeline(self, commands: Sequence[Sequence[str]], **kwargs: Any) -> PipelineResult:
        self.pipelines.append(tuple(tuple(command) for command in commands))
        if self.pipeline_side_effect is not None:
            self.pipeline_side_effect(kwargs.get("cwd"))
        return PipelineResult(returncodes=(0,) * (len(commands) - 1) + (self.pipeline_returncode,))

    @property
    def spawned(self) -> bool:
        return bool(self.commands or self.pipelines)


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> RecordingRunner:
    """Replace process execution in the task module with a recorder."""
    recorder = RecordingRunner()
    monkeypatch.setattr("objective_ci.tasks.run_command", recorder.run_command)
    monkeypatch.setattr("objective_ci.tasks.run_pipeline", recorder.run_pipeline)
    monkeypatch.setattr("objective_ci.environment.run_command", recorder.run_command)
    monkeypatch.setattr("objective_ci.tasks.xcode_version", lambda: 7.3)
    return recorder
