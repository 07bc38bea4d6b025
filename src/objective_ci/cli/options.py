# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared option declarations for the objective-ci CLI."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer

from ..config import ConfigError

SCHEME_OPTION = Annotated[str | None, typer.Option("--scheme", help="Xcode scheme to build.")]
WORKSPACE_OPTION = Annotated[str | None, typer.Option("--workspace", help="Path to the .xcworkspace.")]
PROJECT_OPTION = Annotated[str | None, typer.Option("--project", help="Path to the .xcodeproj.")]
CONFIGURATION_OPTION = Annotated[
    str | None,
    typer.Option("--configuration", help="Build configuration (default: Release)."),
]
DESTINATION_OPTION = Annotated[
    str | None,
    typer.Option("--destination", help="xcodebuild destination specifier."),
]
SDK_OPTION = Annotated[str | None, typer.Option("--sdk", help="SDK to build against (default: iphonesimulator).")]
OUTPUT_OPTION = Annotated[Path | None, typer.Option("--output", "-o", help="Report destination.")]
MINIMUM_TOKENS_OPTION = Annotated[
    int | None,
    typer.Option("--minimum-tokens", min=1, help="Smallest duplicate worth reporting (default: 100)."),
]
TOOL_OPTION = Annotated[
    list[str] | None,
    typer.Option(
        "--tool-options",
        help="Extra flags for a binary as BINARY=FLAGS (repeatable).",
    ),
]
OVERRIDE_OPTION = Annotated[
    list[str] | None,
    typer.Option(
        "--override",
        help="Replace the default flags of BINARY with its --tool-options (repeatable).",
    ),
]
ROOT_OPTION = Annotated[
    Path,
    typer.Option("--root", "-r", file_okay=False, dir_okay=True, exists=True, help="Project root."),
]
CONFIG_OPTION = Annotated[Path | None, typer.Option("--config", help="Configuration file to load.")]
EXCLUDE_OPTION = Annotated[
    list[str] | None,
    typer.Option("--exclude", "-e", help="Additional directory excluded from reports (repeatable)."),
]
INSTALL_OPTION = Annotated[
    bool,
    typer.Option("--pods-install/--no-pods-install", help="Run pod install when a Podfile exists."),
]
KEEP_GOING_OPTION = Annotated[
    bool,
    typer.Option("--keep-going", help="Continue the build after a failing task."),
]
EMOJI_OPTION = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji output.")]


@dataclass(slots=True)
class RunnerOptions:
    """Options shaping the task runner rather than an individual task."""

    root: Path
    config: Path | None
    exclusions: tuple[str, ...]
    install: bool
    emoji: bool
    keep_going: bool = False


def normalize_cli_values(values: Sequence[str] | None) -> tuple[str, ...]:
    """Return sanitized CLI values preserving order."""

    if not values:
        return ()
    return tuple(stripped for entry in values if (stripped := entry.strip()))


def build_tool_flags(
    tool_options: Sequence[str] | None,
    overrides: Sequence[str] | None,
) -> dict[str, dict[str, Any]]:
    """Translate ``--tool-options`` and ``--override`` values into ``tools`` data.

    Raises:
        ConfigError: If a ``--tool-options`` value lacks the ``BINARY=`` prefix.
    """

    tools: dict[str, dict[str, Any]] = {}
    for entry in normalize_cli_values(tool_options):
        binary, separator, flags = entry.partition("=")
        if not separator or not binary.strip():
            raise ConfigError(f"--tool-options expects BINARY=FLAGS, got {entry!r}")
        tools.setdefault(binary.strip(), {})["options"] = flags
    for binary in normalize_cli_values(overrides):
        tools.setdefault(binary, {})["override"] = True
    return tools


__all__ = [
    "CONFIGURATION_OPTION",
    "CONFIG_OPTION",
    "DESTINATION_OPTION",
    "EMOJI_OPTION",
    "EXCLUDE_OPTION",
    "INSTALL_OPTION",
    "KEEP_GOING_OPTION",
    "MINIMUM_TOKENS_OPTION",
    "OUTPUT_OPTION",
    "OVERRIDE_OPTION",
    "PROJECT_OPTION",
    "ROOT_OPTION",
    "RunnerOptions",
    "SCHEME_OPTION",
    "SDK_OPTION",
    "TOOL_OPTION",
    "WORKSPACE_OPTION",
    "build_tool_flags",
    "normalize_cli_values",
]
