# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for startup environment detection."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from objective_ci.config import ProjectConfig
from objective_ci.environment import detect_environment, install_pods, using_pods

if TYPE_CHECKING:
    from conftest import RecordingRunner


def test_defaults_without_podfile(tmp_path: Path) -> None:
    environment = detect_environment(tmp_path)

    assert environment.root == tmp_path.resolve()
    assert environment.exclusions == ("vendor",)
    assert environment.exec_prefix == ("bundle", "exec")
    assert environment.uses_pods is False


@pytest.mark.parametrize("name", ["Podfile", "podfile"])
def test_podfile_adds_pods_exclusion(tmp_path: Path, name: str) -> None:
    (tmp_path / name).write_text("", encoding="utf-8")

    environment = detect_environment(tmp_path)

    assert using_pods(tmp_path)
    assert environment.uses_pods is True
    assert environment.exclusions == ("vendor", "Pods")


def test_configured_and_extra_exclusions_are_appended_once(tmp_path: Path) -> None:
    config = ProjectConfig(exclusions=("Carthage", "vendor/"), exec_prefix=())

    environment = detect_environment(tmp_path, config=config, extra_exclusions=[" ThirdParty ", "Carthage", ""])

    assert environment.exclusions == ("vendor", "Carthage", "ThirdParty")
    assert environment.exec_prefix == ()


def test_install_pods_runs_pod_install(tmp_path: Path, runner: RecordingRunner) -> None:
    (tmp_path / "Podfile").write_text("", encoding="utf-8")

    assert install_pods(detect_environment(tmp_path)) == 0
    assert runner.commands == [("bundle", "exec", "pod", "install")]


def test_install_pods_is_noop_without_podfile(tmp_path: Path, runner: RecordingRunner) -> None:
    assert install_pods(detect_environment(tmp_path)) == 0
    assert runner.commands == []


def test_install_pods_reports_failure(
    tmp_path: Path,
    runner: RecordingRunner,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "Podfile").write_text("", encoding="utf-8")
    runner.returncode = 1

    assert install_pods(detect_environment(tmp_path), use_emoji=False) == 1
    assert "pod install exited with status 1" in capsys.readouterr().err
