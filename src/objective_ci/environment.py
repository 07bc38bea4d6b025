# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Startup detection of project layout, exclusions and the exec wrapper."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .command import wrapped
from .config import ProjectConfig
from .constants import DEFAULT_EXCLUSIONS, POD, PODFILE_NAMES, PODS_EXCLUSION
from .logging import command as log_command
from .logging import fail
from .process_utils import run_command


@dataclass(frozen=True, slots=True)
class CIEnvironment:
    """Immutable facts shared by every task of a run."""

    root: Path
    exclusions: tuple[str, ...] = DEFAULT_EXCLUSIONS
    exec_prefix: tuple[str, ...] = ()
    uses_pods: bool = False


def using_pods(root: Path) -> bool:
    """Return ``True`` when ``root`` contains a CocoaPods ``Podfile``."""

    return any((root / name).is_file() for name in PODFILE_NAMES)


def detect_environment(
    root: Path,
    *,
    config: ProjectConfig | None = None,
    extra_exclusions: Iterable[str] = (),
) -> CIEnvironment:
    """Build the run environment for ``root``.

    Exclusions start with the built-in defaults, gain ``Pods`` when a Podfile
    is present, then the configured and caller-supplied entries. Duplicates
    keep their first position.

    Args:
        root: Project directory the tasks operate in.
        config: Project settings; built-in defaults when omitted.
        extra_exclusions: Additional path fragments supplied by the caller.

    Returns:
        CIEnvironment: Environment value passed to every task.
    """

    config = config or ProjectConfig()
    root = root.resolve()
    pods = using_pods(root)
    candidates = [*DEFAULT_EXCLUSIONS]
    if pods:
        candidates.append(PODS_EXCLUSION)
    candidates.extend(config.exclusions)
    candidates.extend(extra_exclusions)
    exclusions: list[str] = []
    for entry in candidates:
        trimmed = entry.strip().strip("/")
        if trimmed and trimmed not in exclusions:
            exclusions.append(trimmed)
    return CIEnvironment(
        root=root,
        exclusions=tuple(exclusions),
        exec_prefix=tuple(config.exec_prefix),
        uses_pods=pods,
    )


def install_pods(environment: CIEnvironment, *, use_emoji: bool = True) -> int:
    """Run ``pod install`` when the project uses CocoaPods.

    Args:
        environment: Environment describing the project.
        use_emoji: Whether failure messages may include emoji.

    Returns:
        int: Exit status of ``pod install``, or ``0`` when no Podfile exists.
    """

    if not environment.uses_pods:
        return 0
    cmd = wrapped(POD, environment.exec_prefix).arg("install").build()
    log_command(cmd.render())
    completed = run_command(cmd.args, cwd=environment.root, check=False)
    if completed.returncode != 0:
        fail(f"pod install exited with status {completed.returncode}", use_emoji=use_emoji)
    return completed.returncode


__all__ = ["CIEnvironment", "detect_environment", "install_pods", "using_pods"]
