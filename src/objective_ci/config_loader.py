# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Load project settings from ``objective-ci.toml``."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import ConfigError, ProjectConfig
from .constants import CONFIG_FILENAME


class TomlConfigSource:
    """Read a :class:`ProjectConfig` from a TOML document."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self.name = str(path)

    def load(self) -> Mapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Configuration at {self._path} is not valid TOML: {exc}") from exc
        return data

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


def load_project_config(root: Path, *, path: Path | None = None) -> ProjectConfig:
    """Return project settings for ``root``.

    Args:
        root: Project directory searched for ``objective-ci.toml``.
        path: Explicit configuration file overriding the default location.

    Returns:
        ProjectConfig: Parsed settings, or built-in defaults when no file exists.

    Raises:
        ConfigError: If an explicit ``path`` is missing, or the file cannot be
            parsed or contains invalid fields.
    """

    if path is not None and not path.is_file():
        raise ConfigError(f"Configuration file {path} does not exist")
    source = TomlConfigSource(path or root / CONFIG_FILENAME)
    data = source.load()
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"{source.describe()} is invalid: {exc}") from exc


__all__ = ["TomlConfigSource", "load_project_config"]
