"""Semantic versions and version constraints in the style used by package manifests."""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

_VERSION_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)

_OP = r"!=|>=|=>|<=|=<|~>|>|<|=|~|\^"
_CV = (
    r"v?(?:\d+|[xX*])(?:\.(?:\d+|[xX*]))?(?:\.(?:\d+|[xX*]))?"
    r"(?:-[0-9A-Za-z\-.]+)?(?:\+[0-9A-Za-z\-.]+)?"
)
_TERM = rf"(?:{_OP})?\s*{_CV}"
_TERMS_RE = re.compile(rf"\s*{_TERM}(?:\s+{_TERM})*\s*")
_TERM_RE = re.compile(rf"({_OP})?\s*({_CV})")
_HYPHEN_RE = re.compile(rf"({_CV})\s+-\s+({_CV})")
_PART_RE = re.compile(
    r"^v?(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"((?:-[0-9A-Za-z\-.]+)?(?:\+[0-9A-Za-z\-.]+)?)$"
)


def _compare_identifiers(left: str, right: str) -> int:
    left_num, right_num = left.isdigit(), right.isdigit()
    if left_num and right_num:
        a, b = int(left), int(right)
        return (a > b) - (a < b)
    if left_num:
        return -1
    if right_num:
        return 1
    return (left > right) - (left < right)


def _compare_prerelease(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return 1
    if not right:
        return -1
    left_parts, right_parts = left.split("."), right.split(".")
    for a, b in zip(left_parts, right_parts):
        result = _compare_identifiers(a, b)
        if result:
            return result
    return (len(left_parts) > len(right_parts)) - (len(left_parts) < len(right_parts))


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version; build metadata does not take part in comparisons."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""

    def compare(self, other: "Version") -> int:
        for a, b in (
            (self.major, other.major),
            (self.minor, other.minor),
            (self.patch, other.patch),
        ):
            if a != b:
                return 1 if a > b else -1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def parse_version(text: str) -> Version:
    """Parse a version, allowing a leading ``v`` and missing minor or patch parts."""
    match = _VERSION_RE.match(text.strip())
    if not match:
        raise ValueError(f"invalid semantic version: {text!r}")
    major, minor, patch, prerelease, metadata = match.groups()
    prerelease = prerelease or ""
    for identifier in prerelease.split(".") if prerelease else ():
        if identifier.isdigit() and len(identifier) > 1 and identifier.startswith("0"):
            raise ValueError(f"invalid prerelease in version: {text!r}")
    return Version(
        int(major), int(minor or 0), int(patch or 0), prerelease, metadata or ""
    )


@dataclass(frozen=True)
class _Term:
    op: str
    version: Version
    dirty: bool
    major_dirty: bool
    minor_dirty: bool
    patch_dirty: bool


def _is_x(part: str | None) -> bool:
    return part is None or part in ("x", "X", "*")


def _parse_term(op: str, text: str) -> _Term:
    match = _PART_RE.match(text)
    if not match:
        raise ValueError(f"improper constraint: {op}{text}")
    major, minor, patch, rest = match.groups()
    major_dirty = minor_dirty = patch_dirty = False
    if _is_x(major):
        base = f"0.0.0{rest}"
        major_dirty = True
    elif _is_x(minor):
        base = f"{major}.0.0{rest}"
        minor_dirty = True
    elif _is_x(patch):
        base = f"{major}.{minor}.0{rest}"
        patch_dirty = True
    else:
        base = f"{major}.{minor}.{patch}{rest}"
    dirty = major_dirty or minor_dirty or patch_dirty
    return _Term(op or "=", parse_version(base), dirty, major_dirty, minor_dirty, patch_dirty)


def _tilde(v: Version, t: _Term) -> bool:
    if t.major_dirty:
        return True
    c = t.version
    if v < c:
        return False
    if (c.major, c.minor, c.patch) == (0, 0, 0) and not t.minor_dirty and not t.patch_dirty:
        return True
    if v.major != c.major:
        return False
    return v.minor == c.minor or t.minor_dirty


def _caret(v: Version, t: _Term) -> bool:
    if t.major_dirty:
        return True
    c = t.version
    if v < c:
        return False
    if c.major > 0 or t.minor_dirty:
        return v.major == c.major
    if v.major > 0:
        return False
    if c.minor > 0 or t.patch_dirty:
        return v.minor == c.minor
    if v.minor > 0:
        return False
    return v.patch == c.patch


def _greater(v: Version, t: _Term) -> bool:
    c = t.version
    if not t.dirty:
        return v.compare(c) > 0
    if v.major != c.major:
        return v.major > c.major
    if t.minor_dirty:
        return False
    if t.patch_dirty:
        return v.minor > c.minor
    return v.compare(c) > 0


def _less_equal(v: Version, t: _Term) -> bool:
    c = t.version
    if not t.dirty:
        return v.compare(c) <= 0
    if v.major > c.major:
        return False
    if v.major == c.major and v.minor > c.minor and not t.minor_dirty:
        return False
    return True


def _not_equal(v: Version, t: _Term) -> bool:
    c = t.version
    if t.dirty:
        if t.major_dirty:
            return False
        if c.major != v.major:
            return True
        if t.minor_dirty:
            return False
        if c.minor != v.minor:
            return True
        if t.patch_dirty:
            if v.prerelease or c.prerelease:
                return _compare_prerelease(v.prerelease, c.prerelease) != 0
            return False
    return v != c


def _satisfies(v: Version, t: _Term) -> bool:
    if v.prerelease and not t.version.prerelease and (t.op != "!=" or t.dirty):
        return False
    op = t.op
    if op == "=":
        return _tilde(v, t) if t.dirty else v == t.version
    if op == "!=":
        return _not_equal(v, t)
    if op == ">":
        return _greater(v, t)
    if op == "<":
        return v.compare(t.version) < 0
    if op in (">=", "=>"):
        return v.compare(t.version) >= 0
    if op in ("<=", "=<"):
        return _less_equal(v, t)
    if op in ("~", "~>"):
        return _tilde(v, t)
    return _caret(v, t)


@dataclass(frozen=True)
class Constraints:
    """Alternatives joined by ``||``, each a set of terms that must all hold."""

    text: str
    groups: tuple

    def check(self, version) -> bool:
        """Whether ``version`` (a Version or a version string) meets the constraints."""
        if isinstance(version, str):
            version = parse_version(version)
        return any(all(_satisfies(version, term) for term in group) for group in self.groups)

    def __str__(self) -> str:
        return self.text


def parse_constraint(text: str) -> Constraints:
    """Parse constraints such as ``^8.0.0 || ^9.0.0`` or ``>=1.2, <2``."""
    groups = []
    for alternative in text.split("||"):
        part = _HYPHEN_RE.sub(lambda m: f">={m.group(1)} <={m.group(2)}", alternative)
        part = part.replace(",", " ")
        if not part.strip() or not _TERMS_RE.fullmatch(part):
            raise ValueError(f"improper constraint: {text!r}")
        groups.append(
            tuple(_parse_term(m.group(1) or "", m.group(2)) for m in _TERM_RE.finditer(part))
        )
    return Constraints(text, tuple(groups))