# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for duplication report filtering and encoding repair."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest
from defusedxml.ElementTree import ParseError

from objective_ci.duplication import (
    exclude_duplications,
    exclusion_pattern,
    fix_encoding,
    load_report,
)

ROOT = Path("/repo")


def _write(path: Path, body: str, *, declaration: str = '<?xml version="1.0" encoding="UTF-8"?>') -> Path:
    path.write_bytes(f"{declaration}\n{dedent(body).strip()}\n".encode())
    return path


def _duplication_paths(path: Path) -> list[list[str]]:
    document = load_report(path).getroot()
    return [[node.get("path", "") for node in dup.findall("file")] for dup in document.iter("duplication")]


def test_removes_only_duplications_confined_to_exclusions(tmp_path: Path) -> None:
    report = _write(
        tmp_path / "duplication.xml",
        """
        <pmd-cpd>
          <duplication lines="12" tokens="120">
            <file line="1" path="/repo/vendor/A.m"/>
            <file line="9" path="/repo/vendor/B.m"/>
            <codefragment>int a;</codefragment>
          </duplication>
          <duplication lines="20" tokens="140">
            <file line="3" path="/repo/vendor/C.m"/>
            <file line="7" path="/repo/src/D.m"/>
            <codefragment>int b;</codefragment>
          </duplication>
        </pmd-cpd>
        """,
    )

    removed = exclude_duplications(report, ["vendor"], root=ROOT)

    assert removed == 1
    assert _duplication_paths(report) == [["/repo/vendor/C.m", "/repo/src/D.m"]]


def test_duplication_without_files_is_removed(tmp_path: Path) -> None:
    report = _write(
        tmp_path / "duplication.xml",
        """
        <pmd-cpd>
          <duplication lines="4" tokens="100"><codefragment/></duplication>
          <duplication lines="4" tokens="100"><file line="1" path="/repo/src/A.m"/></duplication>
        </pmd-cpd>
        """,
    )

    assert exclude_duplications(report, ["vendor"], root=ROOT) == 1
    assert _duplication_paths(report) == [["/repo/src/A.m"]]


def test_empty_exclusions_only_drop_empty_duplications(tmp_path: Path) -> None:
    report = _write(
        tmp_path / "duplication.xml",
        """
        <pmd-cpd>
          <duplication><file path="/repo/vendor/A.m"/><file path="/repo/vendor/B.m"/></duplication>
          <duplication/>
        </pmd-cpd>
        """,
    )

    assert exclude_duplications(report, [], root=ROOT) == 1
    assert _duplication_paths(report) == [["/repo/vendor/A.m", "/repo/vendor/B.m"]]


def test_every_remaining_duplication_keeps_a_retained_file(tmp_path: Path) -> None:
    paths = [
        ("/repo/vendor/A.m", "/repo/Pods/B.m"),
        ("/repo/Pods/A.m", "/repo/Pods/B.m"),
        ("/repo/src/A.m", "/repo/Pods/B.m"),
        ("/repo/src/vendor/A.m", "/repo/vendor/B.m"),
        ("/elsewhere/vendor/A.m",),
    ]
    nodes = "".join(
        "<duplication>" + "".join(f'<file path="{path}"/>' for path in group) + "</duplication>" for group in paths
    )
    report = _write(tmp_path / "duplication.xml", f"<pmd-cpd>{nodes}</pmd-cpd>")
    exclusions = ["vendor", "Pods"]

    removed = exclude_duplications(report, exclusions, root=ROOT)

    pattern = exclusion_pattern(exclusions, ROOT)
    assert pattern is not None
    remaining = _duplication_paths(report)
    assert removed == 2
    assert len(remaining) == 3
    for files in remaining:
        assert any(pattern.search(path) is None for path in files)


def test_exclusion_entries_are_matched_literally() -> None:
    pattern = exclusion_pattern(["third.party"], ROOT)

    assert pattern is not None
    assert pattern.search("/repo/third.party/A.m")
    assert pattern.search("/repo/thirdXparty/A.m") is None
    assert pattern.search("/repo/third.party.m") is None


def test_exclusion_pattern_is_none_without_entries() -> None:
    assert exclusion_pattern([], ROOT) is None


def test_fix_encoding_declares_utf8(tmp_path: Path) -> None:
    report = tmp_path / "duplication.xml"
    body = '<pmd-cpd><duplication><file path="/repo/src/Café.m"/></duplication></pmd-cpd>'
    report.write_bytes(b'<?xml version="1.0" encoding="MacRoman"?>\n' + body.encode("utf-8"))

    fix_encoding(report)

    content = report.read_bytes()
    assert content.startswith(b"<?xml version='1.0' encoding='UTF-8'?>")
    assert "Café.m" in content.decode("utf-8")


def test_fix_encoding_is_idempotent(tmp_path: Path) -> None:
    report = _write(
        tmp_path / "duplication.xml",
        """
        <pmd-cpd>
          <duplication lines="3" tokens="101">
            <file line="1" path="/repo/src/Ä.m"/>
            <codefragment><![CDATA[if (a < b) {}]]></codefragment>
          </duplication>
        </pmd-cpd>
        """,
    )

    fix_encoding(report)
    first = report.read_bytes()
    fix_encoding(report)

    assert report.read_bytes() == first
    fragment = load_report(report).getroot().find("duplication/codefragment")
    assert fragment is not None
    assert fragment.text == "if (a < b) {}"


def test_missing_report_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        exclude_duplications(tmp_path / "absent.xml", ["vendor"], root=ROOT)


def test_malformed_report_raises(tmp_path: Path) -> None:
    report = tmp_path / "duplication.xml"
    report.write_text("<pmd-cpd><duplication>", encoding="utf-8")

    with pytest.raises(ParseError):
        fix_encoding(report)
