"""Validation of CODEOWNERS entries against package manifests."""

from __future__ import annotations

import os
import posixpath
import re
from dataclasses import dataclass, field

import yaml

DEFAULT_CODEOWNERS_PATH = ".github/CODEOWNERS"


class CodeownersError(Exception):
    """Raised when CODEOWNERS and the packages disagree, or a file cannot be read."""


def _glob_regex(pattern: str) -> re.Pattern:
    """Translate a path glob where ``*`` and ``?`` never match ``/``."""

    def bad() -> CodeownersError:
        return CodeownersError(f"syntax error in pattern: {pattern!r}")

    def escaped_char(index: int) -> tuple[str, int]:
        if index >= len(pattern) or pattern[index] in "-]":
            raise bad()
        if pattern[index] == "\\":
            index += 1
            if index >= len(pattern):
                raise bad()
        return pattern[index], index + 1

    out = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            out.append("[^/]*")
            i += 1
        elif char == "?":
            out.append("[^/]")
            i += 1
        elif char == "\\":
            if i + 1 >= len(pattern):
                raise bad()
            out.append(re.escape(pattern[i + 1]))
            i += 2
        elif char == "[":
            i += 1
            negate = i < len(pattern) and pattern[i] == "^"
            if negate:
                i += 1
            items = []
            while True:
                if i < len(pattern) and pattern[i] == "]" and items:
                    i += 1
                    break
                low, i = escaped_char(i)
                high = low
                if i < len(pattern) and pattern[i] == "-":
                    high, i = escaped_char(i + 1)
                items.append(f"{re.escape(low)}-{re.escape(high)}")
            out.append(("[^" if negate else "[") + "".join(items) + "]")
        else:
            out.append(re.escape(char))
            i += 1
    return re.compile("".join(out))


def _path_match(pattern: str, name: str) -> bool:
    return _glob_regex(pattern).fullmatch(name) is not None


@dataclass
class GithubOwners:
    """Owners per path as read from a CODEOWNERS file."""

    path: str
    owners: dict[str, list[str]] = field(default_factory=dict)

    def check_single_field(self, field: str) -> None:
        """Accept a path-only rule only when it cannot remove owners of earlier rules."""
        if field.startswith("/"):
            for owned_path in self.owners:
                if _path_match(field, owned_path) or field.startswith(owned_path):
                    raise CodeownersError(f"{field!r} would remove owners for {owned_path!r}")
                if owned_path.startswith(field):
                    raise CodeownersError(f"{field!r} would remove owners for {owned_path!r}")
            return
        if field.startswith("@"):
            raise CodeownersError(f"rule with owner without path: {field!r}")
        raise CodeownersError(f"unexpected field found: {field!r}")

    def check_manifest(self, path: str) -> None:
        """Check that the manifest's GitHub owner is among the package's owners."""
        package_dir = posixpath.normpath(posixpath.dirname(path) or ".")
        owners = self.owners.get("/" + package_dir)
        if owners is None:
            raise CodeownersError(f"there is no owner for {package_dir!r} in {self.path!r}")

        try:
            with open(path, encoding="utf-8") as handle:
                manifest = yaml.safe_load(handle)
        except OSError as exc:
            raise CodeownersError(f"failed to read {path!r}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise CodeownersError(f"failed to parse {path!r}: {exc}") from exc

        github = _manifest_github_owner(manifest, path)
        if not github:
            raise CodeownersError(f"no owner specified in {path!r}")
        if "@" + github not in owners:
            raise CodeownersError(
                f"owner {github!r} defined in {path!r} is not in {self.path!r}"
            )

    def check_data_streams(self, package_path: str) -> None:
        """Data streams are either all unowned, or each owned by exactly one owner."""
        streams_path = posixpath.join(package_path, "data_stream")
        if not os.path.exists(streams_path):
            return
        try:
            names = sorted(os.listdir(streams_path))
        except OSError as exc:
            raise CodeownersError(str(exc)) from exc
        if not names:
            return

        without_owner = []
        for name in names:
            stream_dir = posixpath.join(streams_path, name)
            stream_owners = self.owners.get("/" + stream_dir)
            if stream_owners is None:
                without_owner.append(stream_dir)
                continue
            if len(stream_owners) > 1:
                raise CodeownersError(
                    f'data stream "{stream_dir}" of package "{package_path}" has more than '
                    f"one owners [{', '.join(stream_owners)}]"
                )

        if without_owner and len(without_owner) != len(names):
            raise CodeownersError(
                f'package "{package_path}" shares ownership across data streams but these '
                f"ones [{', '.join(without_owner)}] lack owners"
            )


def _manifest_github_owner(manifest, path: str) -> str:
    if manifest is None:
        return ""
    if not isinstance(manifest, dict):
        raise CodeownersError(f"manifest {path!r} is not a mapping")
    owner = manifest.get("owner")
    if owner is None:
        return ""
    if not isinstance(owner, dict):
        raise CodeownersError(f"owner in {path!r} is not a mapping")
    github = owner.get("github")
    if github is None:
        return ""
    if isinstance(github, (dict, list)):
        raise CodeownersError(f"owner.github in {path!r} is not a string")
    return str(github)


def read_github_owners(codeowners_path) -> GithubOwners:
    """Parse a CODEOWNERS file; later rules for the same path take precedence."""
    try:
        with open(codeowners_path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        raise CodeownersError(f"failed to open {str(codeowners_path)!r}: {exc}") from exc

    codeowners = GithubOwners(path=str(codeowners_path))
    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        path, *owners = line.split()
        if not owners:
            try:
                codeowners.check_single_field(path)
            except CodeownersError as exc:
                raise CodeownersError(
                    f"invalid line {line_number} in {str(codeowners_path)!r}: {exc}"
                ) from exc
            continue
        codeowners.owners[path] = owners
    return codeowners


def validate_packages(codeowners: GithubOwners, packages_dir: str) -> None:
    """Check every package's manifest owner and its data stream ownership."""
    try:
        names = sorted(os.listdir(packages_dir))
    except OSError as exc:
        raise CodeownersError(str(exc)) from exc

    if not names:
        if not codeowners.owners:
            return
        raise CodeownersError(f"no packages found in {packages_dir!r}")

    for name in names:
        package_path = posixpath.join(packages_dir, name)
        codeowners.check_manifest(posixpath.join(package_path, "manifest.yml"))
        codeowners.check_data_streams(package_path)


def check() -> None:
    """Validate the repository's CODEOWNERS file against the ``packages`` directory."""
    codeowners = read_github_owners(DEFAULT_CODEOWNERS_PATH)
    validate_packages(codeowners, "packages")


def package_owners(package_name: str, data_stream: str, codeowners_path) -> list[str]:
    """Owners of a package, or of one of its data streams when it has its own rule."""
    try:
        owners = read_github_owners(codeowners_path)
    except CodeownersError as exc:
        raise CodeownersError(f"failed to read CODEOWNERS file: {exc}") from exc

    package_teams = owners.owners.get(f"/packages/{package_name}")
    if package_teams is None:
        raise CodeownersError(f"no owner found for package {package_name}")
    if not data_stream:
        return package_teams
    return owners.owners.get(
        f"/packages/{package_name}/data_stream/{data_stream}", package_teams
    )