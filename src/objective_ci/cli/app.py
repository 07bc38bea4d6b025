# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the CI tasks."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer

from ..config import ConfigError, TaskOptions, coerce_options
from ..config_loader import load_project_config
from ..logging import fail
from ..tasks import BuildResult, CiTasks, TaskResult
from .options import (
    CONFIG_OPTION,
    CONFIGURATION_OPTION,
    DESTINATION_OPTION,
    EMOJI_OPTION,
    EXCLUDE_OPTION,
    INSTALL_OPTION,
    KEEP_GOING_OPTION,
    MINIMUM_TOKENS_OPTION,
    OUTPUT_OPTION,
    OVERRIDE_OPTION,
    PROJECT_OPTION,
    ROOT_OPTION,
    SCHEME_OPTION,
    SDK_OPTION,
    TOOL_OPTION,
    WORKSPACE_OPTION,
    RunnerOptions,
    build_tool_flags,
    normalize_cli_values,
)

CONFIG_ERROR_EXIT_CODE = 2

TaskAction = Callable[[CiTasks, TaskOptions], TaskResult | BuildResult]

app = typer.Typer(
    name="objective-ci",
    help="Run Xcode build, analysis and reporting tasks.",
    no_args_is_help=True,
    add_completion=False,
)


def _runner_options(
    root: Path,
    config: Path | None,
    exclude: list[str] | None,
    install: bool,
    emoji: bool,
    *,
    keep_going: bool = False,
) -> RunnerOptions:
    return RunnerOptions(
        root=root,
        config=config,
        exclusions=normalize_cli_values(exclude),
        install=install,
        emoji=emoji,
        keep_going=keep_going,
    )


def _execute(
    runner: RunnerOptions,
    action: TaskAction,
    *,
    tool_options: list[str] | None,
    overrides: list[str] | None,
    **fields: Any,
) -> None:
    """Run ``action`` and exit with its return code.

    Args:
        runner: Options used to construct the task runner.
        action: Task to invoke on the runner.
        tool_options: Raw ``--tool-options`` values.
        overrides: Raw ``--override`` values.
        **fields: Task option values; ``None`` means unset.

    Raises:
        typer.Exit: Always raised with the task's return code, or ``2`` on a
            configuration error.
    """

    try:
        payload: dict[str, Any] = {name: value for name, value in fields.items() if value is not None}
        tools = build_tool_flags(tool_options, overrides)
        if tools:
            payload["tools"] = tools
        options = coerce_options(payload)
        config = load_project_config(runner.root, path=runner.config)
        tasks = CiTasks.from_project(
            runner.root,
            config=config,
            extra_exclusions=runner.exclusions,
            install_dependencies=runner.install,
            halt_on_failure=False if runner.keep_going else None,
            use_emoji=runner.emoji,
        )
        result = action(tasks, options)
    except ConfigError as exc:
        fail(str(exc), use_emoji=runner.emoji)
        raise typer.Exit(code=CONFIG_ERROR_EXIT_CODE) from exc
    raise typer.Exit(code=result.returncode)


@app.command("lint")
def lint_command(
    scheme: SCHEME_OPTION = None,
    workspace: WORKSPACE_OPTION = None,
    project: PROJECT_OPTION = None,
    configuration: CONFIGURATION_OPTION = None,
    destination: DESTINATION_OPTION = None,
    sdk: SDK_OPTION = None,
    output: OUTPUT_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Build a compilation database and lint it into an HTML report."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji),
        CiTasks.lint,
        tool_options=tool_options,
        overrides=override,
        scheme=scheme,
        workspace=workspace,
        project=project,
        configuration=configuration,
        destination=destination,
        sdk=sdk,
        output=output,
    )


@app.command("test")
def test_command(
    scheme: SCHEME_OPTION = None,
    workspace: WORKSPACE_OPTION = None,
    project: PROJECT_OPTION = None,
    configuration: CONFIGURATION_OPTION = None,
    destination: DESTINATION_OPTION = None,
    sdk: SDK_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Run the test suite and render an HTML report."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji),
        CiTasks.test_suite,
        tool_options=tool_options,
        overrides=override,
        scheme=scheme,
        workspace=workspace,
        project=project,
        configuration=configuration,
        destination=destination,
        sdk=sdk,
    )


@app.command("lines-of-code")
def lines_of_code_command(
    output: OUTPUT_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Count lines of code outside excluded directories."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji),
        CiTasks.lines_of_code,
        tool_options=tool_options,
        overrides=override,
        output=output,
    )


@app.command("duplication")
def duplication_command(
    minimum_tokens: MINIMUM_TOKENS_OPTION = None,
    output: OUTPUT_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Detect duplicated code and write a filtered XML report."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji),
        CiTasks.duplicate_code_detection,
        tool_options=tool_options,
        overrides=override,
        minimum_tokens=minimum_tokens,
        output=output,
    )


@app.command("coverage")
def coverage_command(
    scheme: SCHEME_OPTION = None,
    project: PROJECT_OPTION = None,
    output: OUTPUT_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Render an HTML code coverage report."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji),
        CiTasks.code_coverage,
        tool_options=tool_options,
        overrides=override,
        scheme=scheme,
        project=project,
        output=output,
    )


@app.command("build")
def build_command(
    scheme: SCHEME_OPTION = None,
    workspace: WORKSPACE_OPTION = None,
    project: PROJECT_OPTION = None,
    configuration: CONFIGURATION_OPTION = None,
    destination: DESTINATION_OPTION = None,
    sdk: SDK_OPTION = None,
    minimum_tokens: MINIMUM_TOKENS_OPTION = None,
    tool_options: TOOL_OPTION = None,
    override: OVERRIDE_OPTION = None,
    root: ROOT_OPTION = Path("."),
    config: CONFIG_OPTION = None,
    exclude: EXCLUDE_OPTION = None,
    pods_install: INSTALL_OPTION = True,
    keep_going: KEEP_GOING_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Run lint, lines of code, tests and duplicate detection in order."""

    _execute(
        _runner_options(root, config, exclude, pods_install, emoji, keep_going=keep_going),
        CiTasks.build,
        tool_options=tool_options,
        overrides=override,
        scheme=scheme,
        workspace=workspace,
        project=project,
        configuration=configuration,
        destination=destination,
        sdk=sdk,
        minimum_tokens=minimum_tokens,
    )


def main() -> None:
    """Console script entry point."""

    app()


__all__ = ["app", "main"]
