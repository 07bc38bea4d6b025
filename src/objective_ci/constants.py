# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for report locations and tool defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Final

LINT_DESTINATION: Final[str] = "lint.html"
DUPLICATION_DESTINATION: Final[str] = "duplication.xml"
LINE_COUNT_DESTINATION: Final[str] = "line-count.sc"
COVERAGE_DESTINATION: Final[str] = "coverage"
XCODEBUILD_LOG: Final[str] = "xcodebuild.log"
COMPILE_COMMANDS: Final[Path] = Path("compile_commands.json")
XCPRETTY_COMPILATION_DB: Final[Path] = Path("build") / "reports" / "compilation_db.json"

CONFIG_FILENAME: Final[str] = "objective-ci.toml"

DEFAULT_CONFIGURATION: Final[str] = "Release"
DEFAULT_DESTINATION: Final[str] = "platform=iOS Simulator,name=iPad 2,OS=9.2"
DEFAULT_SDK: Final[str] = "iphonesimulator"
DEFAULT_MINIMUM_TOKENS: Final[int] = 100
LONG_LINE_THRESHOLD: Final[int] = 150

XCODEBUILD: Final[str] = "xcodebuild"
XCPRETTY: Final[str] = "xcpretty"
OCLINT: Final[str] = "oclint-json-compilation-database"
SLOCCOUNT: Final[str] = "sloccount"
CPD: Final[str] = "pmd-cpd-objc"
# Exit status CPD uses to report that duplications were found.
CPD_DUPLICATIONS_FOUND: Final[int] = 4
SLATHER: Final[str] = "slather"
POD: Final[str] = "pod"
TEE: Final[str] = "tee"

# Flags forwarded to xcodebuild, in emission order.
XCODEBUILD_FLAGS: Final[tuple[str, ...]] = (
    "scheme",
    "workspace",
    "project",
    "configuration",
    "sdk",
    "destination",
)

MINIMUM_XCODE_VERSION: Final[float] = 5.0

DEFAULT_EXCLUSIONS: Final[tuple[str, ...]] = ("vendor",)
PODS_EXCLUSION: Final[str] = "Pods"
PODFILE_NAMES: Final[tuple[str, ...]] = ("Podfile", "podfile")
DEFAULT_EXEC_PREFIX: Final[tuple[str, ...]] = ("bundle", "exec")