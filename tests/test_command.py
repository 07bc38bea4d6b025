# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for argument-token command assembly."""

from __future__ import annotations

from objective_ci.command import Command, CommandBuilder, wrapped
from objective_ci.config import ToolFlags


def _builder() -> CommandBuilder:
    return CommandBuilder("xcodebuild").flag("scheme", "My App").flag("workspace", None).arg("test")


def test_builder_skips_unset_flags_and_keeps_values_intact() -> None:
    command = _builder().build()

    assert command.args == ("xcodebuild", "-scheme", "My App", "test")
    assert command.render() == "xcodebuild -scheme 'My App' test"


def test_extra_options_are_appended() -> None:
    command = _builder().build(ToolFlags(options="-quiet -derivedDataPath 'build dir'"))

    assert command.args == ("xcodebuild", "-scheme", "My App", "test", "-quiet", "-derivedDataPath", "build dir")


def test_override_replaces_default_tokens() -> None:
    command = _builder().build(ToolFlags(options="-list", override=True))

    assert command.args == ("xcodebuild", "-list")


def test_override_without_options_leaves_bare_binary() -> None:
    assert _builder().build(ToolFlags(override=True)).args == ("xcodebuild",)


def test_wrapped_prefix_survives_override() -> None:
    builder = wrapped("slather", ("bundle", "exec")).arg("coverage").option("html").option("scheme", "App")

    assert builder.build().args == ("bundle", "exec", "slather", "coverage", "--html", "--scheme", "App")
    assert builder.build(ToolFlags(options="version", override=True)).args == (
        "bundle",
        "exec",
        "slather",
        "version",
    )


def test_command_is_iterable() -> None:
    command = Command(args=("tee", "xcodebuild.log"))

    assert list(command) == ["tee", "xcodebuild.log"]
    assert len(command) == 2
