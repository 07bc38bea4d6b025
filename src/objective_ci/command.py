# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Argument-token command assembly for external tools."""

from __future__ import annotations

import shlex
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from .config import ToolFlags


@dataclass(frozen=True, slots=True)
class Command:
    """Immutable argument vector for a single process."""

    args: tuple[str, ...]

    def render(self) -> str:
        """Return a shell-quoted rendering suitable for logging."""

        return shlex.join(self.args)

    def __iter__(self) -> Iterator[str]:
        return iter(self.args)

    def __len__(self) -> int:
        return len(self.args)


@dataclass(slots=True)
class CommandBuilder:
    """Collect default flags for ``binary`` and apply caller customisation.

    Default tokens are gathered through :meth:`flag`, :meth:`option` and
    :meth:`arg`. :meth:`build` then appends the caller's extra tokens, or
    replaces the defaults entirely when the caller asked for an override.
    """

    binary: str
    prefix: tuple[str, ...] = ()
    _tokens: list[str] = field(default_factory=list)

    def flag(self, name: str, value: object | None) -> CommandBuilder:
        """Append ``-name value`` when ``value`` is set."""

        if value is not None:
            self._tokens.extend((f"-{name}", str(value)))
        return self

    def option(self, name: str, value: object | None = None) -> CommandBuilder:
        """Append ``--name`` and, when given, its value."""

        self._tokens.append(f"--{name}")
        if value is not None:
            self._tokens.append(str(value))
        return self

    def arg(self, *tokens: object) -> CommandBuilder:
        """Append positional tokens verbatim."""

        self._tokens.extend(str(token) for token in tokens)
        return self

    def build(self, flags: ToolFlags | None = None) -> Command:
        """Return the final command honouring ``flags``.

        Args:
            flags: Caller customisation for this binary.

        Returns:
            Command: Prefix, binary and argument tokens.
        """

        flags = flags or ToolFlags()
        extra = flags.tokens
        tokens = extra if flags.override else [*self._tokens, *extra]
        return Command(args=(*self.prefix, self.binary, *tokens))


def wrapped(binary: str, prefix: Sequence[str]) -> CommandBuilder:
    """Return a builder that runs ``binary`` through the exec-wrapper ``prefix``."""

    return CommandBuilder(binary=binary, prefix=tuple(prefix))


__all__ = ["Command", "CommandBuilder", "wrapped"]
