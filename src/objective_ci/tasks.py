# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CI tasks driving the Xcode build, analysis and reporting tools."""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from .command import Command, CommandBuilder, wrapped
from .config import (
    ProjectConfig,
    TaskOptions,
    coerce_options,
    require_any_option,
    require_options,
    resolve_options,
)
from .config_loader import load_project_config
from .constants import (
    COMPILE_COMMANDS,
    COVERAGE_DESTINATION,
    CPD,
    CPD_DUPLICATIONS_FOUND,
    DEFAULT_CONFIGURATION,
    DEFAULT_DESTINATION,
    DEFAULT_MINIMUM_TOKENS,
    DEFAULT_SDK,
    DUPLICATION_DESTINATION,
    LINE_COUNT_DESTINATION,
    LINT_DESTINATION,
    LONG_LINE_THRESHOLD,
    MINIMUM_XCODE_VERSION,
    OCLINT,
    PODS_EXCLUSION,
    SLATHER,
    SLOCCOUNT,
    TEE,
    XCODEBUILD,
    XCODEBUILD_FLAGS,
    XCODEBUILD_LOG,
    XCPRETTY,
    XCPRETTY_COMPILATION_DB,
)
from .duplication import exclude_duplications, fix_encoding
from .environment import CIEnvironment, detect_environment, install_pods
from .logging import command as log_command
from .logging import fail, info, ok, section, warn
from .process_utils import run_command, run_pipeline
from .toolchain import xcode_version

OptionsInput = TaskOptions | Mapping[str, Any] | None

LINT_TASK: Final[str] = "lint"
TEST_TASK: Final[str] = "test"
LINES_OF_CODE_TASK: Final[str] = "lines-of-code"
DUPLICATION_TASK: Final[str] = "duplication"
COVERAGE_TASK: Final[str] = "coverage"

_XCODEBUILD_DEFAULTS: Final[Mapping[str, Any]] = {
    "configuration": DEFAULT_CONFIGURATION,
    "destination": DEFAULT_DESTINATION,
    "sdk": DEFAULT_SDK,
}


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Outcome of a single task."""

    name: str
    returncode: int
    artifacts: tuple[Path, ...] = ()
    commands: tuple[Command, ...] = ()

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcomes of the tasks a build ran, in execution order."""

    results: tuple[TaskResult, ...]

    @property
    def returncode(self) -> int:
        """Return the status of the first failed task, or ``0``."""

        for result in self.results:
            if not result.ok:
                return result.returncode
        return 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def filter_excluded_lines(data: bytes, exclusions: Sequence[str]) -> bytes:
    """Return ``data`` without the lines mentioning any exclusion entry."""

    needles = [entry.encode() for entry in exclusions]
    return b"".join(
        line for line in data.splitlines(keepends=True) if not any(needle in line for needle in needles)
    )


def normalize_relative_paths(data: bytes) -> bytes:
    """Rewrite the first ``/./`` segment of every line to ``/``.

    The detector reports paths such as ``/repo/./Sources/A.m`` which the
    dashboard cannot match against the workspace.
    """

    return b"".join(line.replace(b"/./", b"/", 1) for line in data.splitlines(keepends=True))


class CiTasks:
    """Run the CI tasks for one project.

    Every task accepts :class:`TaskOptions` (or a mapping of the same fields),
    resolves them against the project defaults and its own defaults without
    modifying the input, runs its tools synchronously in the project root and
    returns a :class:`TaskResult`.
    """

    def __init__(
        self,
        environment: CIEnvironment,
        *,
        defaults: TaskOptions | None = None,
        halt_on_failure: bool = True,
        use_emoji: bool = True,
    ) -> None:
        self.environment = environment
        # Report paths are per task, so a shared default output is never applied.
        self._defaults = (defaults or TaskOptions()).model_copy(update={"output": None})
        self._halt_on_failure = halt_on_failure
        self._use_emoji = use_emoji

    @classmethod
    def from_project(
        cls,
        root: Path,
        *,
        config: ProjectConfig | None = None,
        extra_exclusions: Sequence[str] = (),
        install_dependencies: bool = True,
        halt_on_failure: bool | None = None,
        use_emoji: bool = True,
    ) -> CiTasks:
        """Detect the environment of ``root`` and return a ready task runner.

        Runs ``pod install`` when a Podfile is present unless disabled by the
        caller or the project configuration.

        Args:
            root: Project directory.
            config: Project settings; loaded from ``root`` when omitted.
            extra_exclusions: Additional path fragments to exclude from reports.
            install_dependencies: Whether CocoaPods dependencies may be installed.
            halt_on_failure: Overrides the configured build failure policy.
            use_emoji: Whether console output may include emoji.

        Returns:
            CiTasks: Task runner bound to the detected environment.
        """

        config = config or load_project_config(root)
        environment = detect_environment(root, config=config, extra_exclusions=extra_exclusions)
        if install_dependencies and config.install_pods:
            install_pods(environment, use_emoji=use_emoji)
        return cls(
            environment,
            defaults=config.defaults,
            halt_on_failure=config.halt_on_failure if halt_on_failure is None else halt_on_failure,
            use_emoji=use_emoji,
        )

    def build(self, options: OptionsInput = None) -> BuildResult:
        """Run lint, lines of code, tests and duplication detection in order.

        Each task writes to its own default report, so ``output`` is ignored.
        The build stops at the first failing task unless the runner was
        created with ``halt_on_failure=False``.
        """

        shared = coerce_options(options).model_copy(update={"output": None})
        steps: tuple[Callable[[OptionsInput], TaskResult], ...] = (
            self.lint,
            self.lines_of_code,
            self.test_suite,
            self.duplicate_code_detection,
        )
        results: list[TaskResult] = []
        for step in steps:
            result = step(shared)
            results.append(result)
            if not result.ok and self._halt_on_failure:
                fail(
                    f"{result.name} failed with exit code {result.returncode}; stopping build",
                    use_emoji=self._use_emoji,
                )
                break
        build_result = BuildResult(results=tuple(results))
        if build_result.ok:
            ok("Build finished", use_emoji=self._use_emoji)
        return build_result

    def lint(self, options: OptionsInput = None) -> TaskResult:
        """Compile the project into a compilation database and lint it to HTML."""

        resolved = self._resolve(options, {**_XCODEBUILD_DEFAULTS, "output": LINT_DESTINATION})
        require_any_option(resolved, "workspace", "project")
        require_options(resolved, "scheme")
        section("Lint", use_color=True)

        compile_cmd = self._xcodebuild(resolved)
        formatter = (
            wrapped(XCPRETTY, self.environment.exec_prefix)
            .flag("r", "json-compilation-database")
            .build(resolved.flags_for(XCPRETTY))
        )
        compiled = self._pipeline(compile_cmd, formatter)
        if compiled.returncode != 0:
            return TaskResult(LINT_TASK, compiled.returncode, commands=(compile_cmd, formatter))

        database = self._path(XCPRETTY_COMPILATION_DB)
        database.replace(self._path(COMPILE_COMMANDS))

        report = self._path(resolved.output)
        linter = (
            wrapped(OCLINT, self.environment.exec_prefix)
            .flag("e", PODS_EXCLUSION)
            .arg("--", "-report-type", "html", "-o", report, "-rc", f"LONG_LINE={LONG_LINE_THRESHOLD}")
            .build(resolved.flags_for(OCLINT))
        )
        completed = self._run(linter)
        return TaskResult(
            LINT_TASK,
            completed.returncode,
            artifacts=(self._path(COMPILE_COMMANDS), report),
            commands=(compile_cmd, formatter, linter),
        )

    def test_suite(self, options: OptionsInput = None) -> TaskResult:
        """Run the test action and render an HTML test report."""

        resolved = self._resolve(options, _XCODEBUILD_DEFAULTS)
        require_any_option(resolved, "workspace", "project")
        require_options(resolved, "scheme")
        section("Tests", use_color=True)

        if not resolved.flags_for(XCODEBUILD).override:
            version = xcode_version()
            if version < MINIMUM_XCODE_VERSION:
                warn(
                    f"WARNING: Xcode version {version} is less than {MINIMUM_XCODE_VERSION}, "
                    "and tests will likely not run",
                    use_emoji=self._use_emoji,
                )

        test_cmd = self._xcodebuild(resolved, "test")
        log = self._path(XCODEBUILD_LOG)
        tee = CommandBuilder(TEE).arg(log).build()
        formatter = (
            wrapped(XCPRETTY, self.environment.exec_prefix)
            .option("color")
            .option("report", "html")
            .build(resolved.flags_for(XCPRETTY))
        )
        result = self._pipeline(test_cmd, tee, formatter)
        return TaskResult(TEST_TASK, result.returncode, artifacts=(log,), commands=(test_cmd, tee, formatter))

    def lines_of_code(self, options: OptionsInput = None) -> TaskResult:
        """Count lines of code and write the report without excluded paths."""

        resolved = self._resolve(options, {"output": LINE_COUNT_DESTINATION})
        section("Lines of code", use_color=True)

        counter = (
            wrapped(SLOCCOUNT, self.environment.exec_prefix)
            .option("duplicates")
            .option("wide")
            .option("details")
            .arg(".")
            .build(resolved.flags_for(SLOCCOUNT))
        )
        completed = self._capture(counter)
        report = self._path(resolved.output)
        report.write_bytes(filter_excluded_lines(completed.stdout or b"", self.environment.exclusions))
        return TaskResult(LINES_OF_CODE_TASK, completed.returncode, artifacts=(report,), commands=(counter,))

    def duplicate_code_detection(self, options: OptionsInput = None) -> TaskResult:
        """Detect copy/pasted code and write a filtered, UTF-8 XML report."""

        resolved = self._resolve(
            options,
            {"output": DUPLICATION_DESTINATION, "minimum_tokens": DEFAULT_MINIMUM_TOKENS},
        )
        section("Duplicate code", use_color=True)

        detector = (
            wrapped(CPD, self.environment.exec_prefix)
            .option("minimum-tokens", resolved.minimum_tokens)
            .build(resolved.flags_for(CPD))
        )
        completed = self._capture(detector)
        report = self._path(resolved.output)
        report.write_bytes(normalize_relative_paths(completed.stdout or b""))
        # Status 4 only signals that duplications were found; the report is complete.
        # See "CPD exit status" in DESIGN.md.
        returncode = 0 if completed.returncode == CPD_DUPLICATIONS_FOUND else completed.returncode
        if returncode != 0:
            fail(f"{CPD} exited with status {returncode}", use_emoji=self._use_emoji)
            return TaskResult(DUPLICATION_TASK, returncode, artifacts=(report,), commands=(detector,))

        removed = exclude_duplications(report, self.environment.exclusions, root=self.environment.root)
        fix_encoding(report)
        info(f"Removed {removed} duplications within excluded paths", use_emoji=self._use_emoji)
        return TaskResult(DUPLICATION_TASK, returncode, artifacts=(report,), commands=(detector,))

    def code_coverage(self, options: OptionsInput = None) -> TaskResult:
        """Render an HTML coverage report from the profiling data of the last test run."""

        resolved = self._resolve(options, {"output": COVERAGE_DESTINATION})
        require_options(resolved, "scheme", "project")
        section("Coverage", use_color=True)

        report = self._path(resolved.output)
        coverage = (
            wrapped(SLATHER, self.environment.exec_prefix)
            .arg("coverage")
            .option("input-format", "profdata")
            .option("html")
            .option("output-directory", report)
            .option("scheme", resolved.scheme)
            .arg(resolved.project)
            .build(resolved.flags_for(SLATHER))
        )
        completed = self._run(coverage)
        return TaskResult(COVERAGE_TASK, completed.returncode, artifacts=(report,), commands=(coverage,))

    def _resolve(self, options: OptionsInput, task_defaults: Mapping[str, Any]) -> TaskOptions:
        return resolve_options(coerce_options(options), self._defaults, task_defaults)

    def _xcodebuild(self, options: TaskOptions, *actions: str) -> Command:
        builder = CommandBuilder(XCODEBUILD)
        for name in XCODEBUILD_FLAGS:
            builder.flag(name, getattr(options, name))
        return builder.arg(*actions).build(options.flags_for(XCODEBUILD))

    def _path(self, path: Path | str | None) -> Path:
        candidate = Path(path) if path is not None else Path()
        return candidate if candidate.is_absolute() else self.environment.root / candidate

    def _run(self, command: Command) -> Any:
        log_command(command.render())
        return run_command(command.args, cwd=self.environment.root, check=False)

    def _capture(self, command: Command) -> Any:
        log_command(command.render())
        completed = run_command(
            command.args,
            cwd=self.environment.root,
            check=False,
            capture_output=True,
            text=False,
        )
        if completed.stderr:
            sys.stderr.write(completed.stderr.decode("utf-8", errors="replace"))
        return completed

    def _pipeline(self, *commands: Command) -> Any:
        log_command(" | ".join(command.render() for command in commands))
        return run_pipeline([command.args for command in commands], cwd=self.environment.root)


__all__ = [
    "BuildResult",
    "CiTasks",
    "TaskResult",
    "filter_excluded_lines",
    "normalize_relative_paths",
]
