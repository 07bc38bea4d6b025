# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and helpers for the objective-ci task runner."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import DEFAULT_EXEC_PREFIX

_OPTIONS_SUFFIX: Final[str] = "_options"
_OVERRIDE_SUFFIX: Final[str] = "_override"


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class MissingOptionError(ConfigError):
    """Raised when a task is invoked without the options it requires."""

    def __init__(self, message: str, *, options: tuple[str, ...]) -> None:
        """Initialise the error with the offending option names.

        Args:
            message: Human-readable description of the failure.
            options: Option names that were required but absent.
        """

        super().__init__(message)
        self.options = options


class ToolFlags(BaseModel):
    """Per-binary command line customisation.

    ``options`` is split into argument tokens with shell quoting rules. When
    ``override`` is set the tokens replace the task's default flags instead of
    being appended to them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    options: str = ""
    override: bool = False

    @field_validator("options")
    @classmethod
    def _check_quoting(cls, value: str) -> str:
        shlex.split(value)
        return value

    @property
    def tokens(self) -> list[str]:
        """Return ``options`` split into argument tokens."""

        return shlex.split(self.options)


class TaskOptions(BaseModel):
    """Options accepted by every task; unset fields resolve to task defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    scheme: str | None = None
    workspace: str | None = None
    project: str | None = None
    configuration: str | None = None
    destination: str | None = None
    sdk: str | None = None
    output: Path | None = None
    minimum_tokens: int | None = Field(default=None, gt=0)
    tools: dict[str, ToolFlags] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fold_tool_keys(cls, data: Any) -> Any:
        """Accept ``<binary>_options`` and ``<binary>_override`` keys.

        Args:
            data: Raw mapping supplied to the model.

        Returns:
            Any: Mapping with per-binary keys folded into ``tools``.
        """

        if not isinstance(data, Mapping):
            return data
        payload: dict[str, Any] = {}
        folded: dict[str, dict[str, Any]] = {}
        for key, value in data.items():
            binary, field = _split_tool_key(str(key))
            if binary is None:
                payload[str(key)] = value
                continue
            folded.setdefault(binary, {})[field] = value
        if not folded:
            return payload
        tools: dict[str, Any] = {}
        for name, flags in dict(payload.get("tools") or {}).items():
            tools[name] = flags.model_dump() if isinstance(flags, ToolFlags) else dict(flags)
        for binary, fields in folded.items():
            tools[binary] = {**tools.get(binary, {}), **fields}
        payload["tools"] = tools
        return payload

    def flags_for(self, binary: str) -> ToolFlags:
        """Return the customisation registered for ``binary``."""

        return self.tools.get(binary, ToolFlags())


class ProjectConfig(BaseModel):
    """Project-level settings loaded from ``objective-ci.toml``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    exclusions: tuple[str, ...] = ()
    exec_prefix: tuple[str, ...] = DEFAULT_EXEC_PREFIX
    install_pods: bool = True
    halt_on_failure: bool = True
    defaults: TaskOptions = Field(default_factory=TaskOptions)

    @field_validator("defaults")
    @classmethod
    def _reject_shared_output(cls, value: TaskOptions) -> TaskOptions:
        # Every task has its own report path.
        if value.output is not None:
            raise ValueError("output cannot be set in [defaults]; pass it to a single task instead")
        return value


def _split_tool_key(key: str) -> tuple[str | None, str]:
    for suffix, field in ((_OPTIONS_SUFFIX, "options"), (_OVERRIDE_SUFFIX, "override")):
        if key.endswith(suffix) and len(key) > len(suffix):
            return key[: -len(suffix)].replace("_", "-"), field
    return None, ""


def coerce_options(value: TaskOptions | Mapping[str, Any] | None) -> TaskOptions:
    """Return ``value`` as :class:`TaskOptions`.

    Args:
        value: Options model, raw mapping or ``None``.

    Returns:
        TaskOptions: Validated options.

    Raises:
        ConfigError: If the mapping contains unknown or invalid fields.
    """

    if value is None:
        return TaskOptions()
    if isinstance(value, TaskOptions):
        return value
    try:
        return TaskOptions.model_validate(dict(value))
    except ValueError as exc:
        raise ConfigError(f"invalid task options: {exc}") from exc


def resolve_options(options: TaskOptions, *layers: TaskOptions | Mapping[str, Any]) -> TaskOptions:
    """Return a new options value with unset fields filled from ``layers``.

    Layers are consulted in order; the first one providing a field wins. Tool
    customisations are merged per binary with the same precedence. ``options``
    itself is never modified.

    Args:
        options: Explicit options supplied by the caller.
        layers: Fallback values, most specific first.

    Returns:
        TaskOptions: Resolved options.
    """

    updates: dict[str, Any] = {}
    tools = dict(options.tools)
    for layer in layers:
        fallback = layer if isinstance(layer, TaskOptions) else TaskOptions.model_validate(dict(layer))
        for name in TaskOptions.model_fields:
            if name == "tools" or getattr(options, name) is not None or name in updates:
                continue
            value = getattr(fallback, name)
            if value is not None:
                updates[name] = value
        for binary, flags in fallback.tools.items():
            tools.setdefault(binary, flags)
    updates["tools"] = tools
    return options.model_copy(update=updates)


def require_options(options: TaskOptions, *names: str) -> None:
    """Raise :class:`MissingOptionError` unless every option in ``names`` is set."""

    for name in names:
        if getattr(options, name) is None:
            raise MissingOptionError(f"option {name} is required.", options=(name,))


def require_any_option(options: TaskOptions, *names: str) -> None:
    """Raise :class:`MissingOptionError` unless at least one of ``names`` is set."""

    if all(getattr(options, name) is None for name in names):
        joined = ", ".join(names)
        raise MissingOptionError(f"at least one of the options {joined} is required", options=names)


__all__ = [
    "ConfigError",
    "MissingOptionError",
    "ProjectConfig",
    "TaskOptions",
    "ToolFlags",
    "coerce_options",
    "require_any_option",
    "require_options",
    "resolve_options",
]
