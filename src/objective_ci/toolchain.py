# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Detection of the installed Xcode toolchain version."""

from __future__ import annotations

import re
from typing import Final

from .constants import XCODEBUILD
from .process_utils import run_command

_XCODE_VERSION_RE: Final[re.Pattern[str]] = re.compile(r"^Xcode ([0-9]+\.[0-9]+)", re.MULTILINE)


def parse_xcode_version(output: str) -> float:
    """Return the ``major.minor`` version found in ``xcodebuild -version`` output.

    Args:
        output: Text printed by ``xcodebuild -version``.

    Returns:
        float: Parsed version, or ``0.0`` when no version line is present.
    """

    match = _XCODE_VERSION_RE.search(output)
    return float(match.group(1)) if match else 0.0


def xcode_version() -> float:
    """Return the installed Xcode version, ``0.0`` when it cannot be determined."""

    try:
        completed = run_command([XCODEBUILD, "-version"], check=False, capture_output=True)
    except FileNotFoundError:
        return 0.0
    return parse_xcode_version(completed.stdout or "")


__all__ = ["parse_xcode_version", "xcode_version"]
