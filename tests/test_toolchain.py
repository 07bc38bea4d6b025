# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for Xcode version detection."""

from __future__ import annotations

from subprocess import CompletedProcess
from typing import Any

import pytest

from objective_ci.toolchain import parse_xcode_version, xcode_version


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("Xcode 7.3.1\nBuild version 7D1014\n", 7.3),
        ("Xcode 4.6\nBuild version 4H127\n", 4.6),
        ("xcode-select: error: tool 'xcodebuild' requires Xcode\n", 0.0),
        ("", 0.0),
    ],
)
def test_parse_xcode_version(output: str, expected: float) -> None:
    assert parse_xcode_version(output) == expected


def test_xcode_version_queries_xcodebuild(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []

    def fake_run_command(args: list[str], **kwargs: Any) -> CompletedProcess[str]:
        calls.append(list(args))
        return CompletedProcess(args=args, returncode=0, stdout="Xcode 9.2\nBuild version 9C40b\n", stderr="")

    monkeypatch.setattr("objective_ci.toolchain.run_command", fake_run_command)

    assert xcode_version() == 9.2
    assert calls == [["xcodebuild", "-version"]]


def test_xcode_version_without_xcodebuild(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(args: list[str], **kwargs: Any) -> CompletedProcess[str]:
        raise FileNotFoundError("Executable 'xcodebuild' was not found on PATH")

    monkeypatch.setattr("objective_ci.toolchain.run_command", missing)

    assert xcode_version() == 0.0
