"""Generic coverage reports: reading, merging and writing."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

_ATTR_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}
_INT_RE = re.compile(r"[+-]?\d+")


class CoverageError(Exception):
    """Raised when a coverage report cannot be read, merged or written."""


def _escape_attr(value: str) -> str:
    return "".join(_ATTR_ESCAPES.get(char, char) for char in value)


def _comment(text: str) -> str:
    if "--" in text:
        raise CoverageError('unable to format test results as Coverage: comments must not contain "--"')
    tail = " " if text.endswith("-") else ""
    return f"<!--{text}{tail}-->"


def _parse_int(value: str | None, name: str) -> int:
    if value is None:
        return 0
    text = value.strip()
    if not _INT_RE.fullmatch(text):
        raise CoverageError(f"xml decode failed: invalid integer {name}={value!r}")
    return int(text)


def _parse_bool(value: str | None, name: str) -> bool:
    if value is None:
        return False
    text = value.strip()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise CoverageError(f"xml decode failed: invalid boolean {name}={value!r}")


@dataclass
class GenericLine:
    """One line that can be covered."""

    line_number: int
    covered: bool = False


@dataclass
class GenericFile:
    """Coverage of the lines of a single file."""

    path: str
    lines: list[GenericLine] = field(default_factory=list)

    def merge(self, other: "GenericFile") -> None:
        """Add the other file's lines; a line is covered if either report covers it."""
        by_number: dict[int, GenericLine] = {}
        for line in self.lines:
            by_number.setdefault(line.line_number, line)
        for line in other.lines:
            existing = by_number.get(line.line_number)
            if existing is None:
                added = GenericLine(line.line_number, line.covered)
                self.lines.append(added)
                by_number[added.line_number] = added
            else:
                existing.covered = existing.covered or line.covered


@dataclass
class GenericCoverage:
    """The root of a generic coverage report."""

    version: int = 0
    files: list[GenericFile] = field(default_factory=list)
    timestamp: int = 0
    test_type: str = ""

    def merge(self, other: "GenericCoverage") -> None:
        """Merge another report into this one, file by file."""
        for other_file in other.files:
            target = next((f for f in self.files if f.path == other_file.path), None)
            if target is not None:
                target.merge(other_file)
            else:
                copy = GenericFile(other_file.path)
                copy.merge(other_file)
                self.files.append(copy)

    def to_bytes(self) -> bytes:
        """The report as indented XML with a declaration header."""
        children = []
        for report_file in self.files:
            opening = f'  <file path="{_escape_attr(report_file.path)}">'
            if not report_file.lines:
                children.append(opening + "</file>")
                continue
            lines = [
                f'    <lineToCover lineNumber="{line.line_number}" '
                f'covered="{"true" if line.covered else "false"}"></lineToCover>'
                for line in report_file.lines
            ]
            children.append("\n".join([opening, *lines, "  </file>"]))
        if self.test_type:
            children.append("  " + _comment(self.test_type))

        head = f'<coverage version="{self.version}">'
        if children:
            body = "\n".join([head, *children, "</coverage>"])
        else:
            body = head + "</coverage>"
        return (XML_HEADER + "\n" + body).encode("utf-8")


def read_generic_coverage(path) -> GenericCoverage:
    """Read a coverage report from an XML file."""
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise CoverageError(f"open failed: {exc}") from exc

    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    try:
        parser.feed(content)
        root = parser.close()
    except ET.ParseError as exc:
        raise CoverageError(f"xml decode failed: {exc}") from exc

    if root.tag != "coverage":
        raise CoverageError(
            f"xml decode failed: expected element type <coverage> but have <{root.tag}>"
        )

    coverage = GenericCoverage(version=_parse_int(root.get("version"), "version"))
    comments = []
    for child in root:
        if child.tag is ET.Comment:
            comments.append(child.text or "")
        elif child.tag == "file":
            report_file = GenericFile(path=child.get("path", ""))
            for line in child.iter("lineToCover"):
                report_file.lines.append(
                    GenericLine(
                        _parse_int(line.get("lineNumber"), "lineNumber"),
                        _parse_bool(line.get("covered"), "covered"),
                    )
                )
            coverage.files.append(report_file)
    coverage.test_type = "".join(comments)
    return coverage


def merge_generic_coverage_files(paths: Iterable, output) -> None:
    """Merge the reports at ``paths`` in order and write the result to ``output``."""
    coverage: GenericCoverage | None = None
    for path in paths:
        try:
            report = read_generic_coverage(path)
        except CoverageError as exc:
            raise CoverageError(f"failed to read coverage from {path}: {exc}") from exc
        if coverage is None:
            coverage = report
        else:
            coverage.merge(report)

    if coverage is None:
        raise CoverageError("no coverage files to merge")

    try:
        data = coverage.to_bytes()
    except CoverageError as exc:
        raise CoverageError(f"failed to encode merged coverage: {exc}") from exc

    try:
        with open(output, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise CoverageError(f"cannot write merged coverage to {output}: {exc}") from exc