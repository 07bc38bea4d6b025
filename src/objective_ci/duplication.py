# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Post-processing of copy/paste detector XML reports.

The detector offers no way to exclude directories from its results, and it
does not always declare the encoding it actually writes. Reports are therefore
filtered after the fact and rewritten with an explicit UTF-8 declaration so
the dashboard plugins that consume them can parse them.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import Final
from xml.etree.ElementTree import Element, ElementTree

import defusedxml.ElementTree as DefusedET

DUPLICATION_TAG: Final[str] = "duplication"
FILE_TAG: Final[str] = "file"
PATH_ATTRIBUTE: Final[str] = "path"
REPORT_ENCODING: Final[str] = "UTF-8"

_DECLARATION_RE: Final[re.Pattern[str]] = re.compile(r"^\s*<\?xml[^>]*\?>")


def exclusion_pattern(exclusions: Sequence[str], root: Path) -> re.Pattern[str] | None:
    """Return a regex matching paths beneath any excluded directory of ``root``.

    Each entry is rendered as ``<root>/<entry>/``. ``None`` is returned for an
    empty exclusion list, which excludes nothing.

    Args:
        exclusions: Path fragments relative to ``root``.
        root: Absolute project directory used by the detector.

    Returns:
        re.Pattern[str] | None: Compiled alternation, or ``None``.
    """

    if not exclusions:
        return None
    alternatives = "|".join(re.escape(f"{root}/{entry}/") for entry in exclusions)
    return re.compile(f"({alternatives})")


def is_excluded(duplication: Element, pattern: re.Pattern[str] | None) -> bool:
    """Return ``True`` when every file of ``duplication`` matches ``pattern``.

    A duplication without file entries is always excluded.
    """

    return all(
        pattern is not None and pattern.search(node.get(PATH_ATTRIBUTE, "")) is not None
        for node in duplication.findall(FILE_TAG)
    )


def load_report(path: Path) -> ElementTree:
    """Parse the report at ``path`` as UTF-8, ignoring its declared encoding.

    Raises:
        FileNotFoundError: If the report does not exist.
        defusedxml.ElementTree.ParseError: If the report is not well-formed.
    """

    text = path.read_bytes().decode(REPORT_ENCODING, errors="replace")
    root = DefusedET.fromstring(_DECLARATION_RE.sub("", text, count=1))
    return ElementTree(root)


def write_report(tree: ElementTree, path: Path) -> None:
    """Write ``tree`` to ``path`` with an explicit UTF-8 declaration."""

    tree.write(path, encoding=REPORT_ENCODING, xml_declaration=True)


def exclude_duplications(path: Path, exclusions: Sequence[str], *, root: Path) -> int:
    """Drop duplications confined to excluded directories and rewrite ``path``.

    Duplications spanning both excluded and retained files are kept.

    Args:
        path: Detector report to filter in place.
        exclusions: Path fragments relative to ``root``.
        root: Absolute project directory used by the detector.

    Returns:
        int: Number of duplication entries removed.
    """

    tree = load_report(path)
    document = tree.getroot()
    pattern = exclusion_pattern(exclusions, root)
    parents = {child: parent for parent in document.iter() for child in parent}
    removed = 0
    for node in list(document.iter(DUPLICATION_TAG)):
        parent = parents.get(node)
        if parent is None or not is_excluded(node, pattern):
            continue
        parent.remove(node)
        removed += 1
    write_report(tree, path)
    return removed


def fix_encoding(path: Path) -> None:
    """Re-read ``path`` as UTF-8 and rewrite it declaring that encoding."""

    write_report(load_report(path), path)


__all__ = [
    "exclude_duplications",
    "exclusion_pattern",
    "fix_encoding",
    "is_excluded",
    "load_report",
    "write_report",
]
