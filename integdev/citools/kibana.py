"""Kibana version constraints declared by packages."""

from __future__ import annotations

from integdev.citools.manifest import read_package_manifest
from integdev.citools.semver import Constraints, parse_constraint, parse_version


def kibana_constraint_package(path) -> Constraints | None:
    """Return the package's Kibana constraint, or None when it declares none."""
    manifest = read_package_manifest(path)
    if not manifest.kibana_version:
        return None
    try:
        return parse_constraint(manifest.kibana_version)
    except ValueError as exc:
        raise ValueError(f"failed to parse kibana constraint: {exc}") from exc


def is_package_supported_in_stack_version(stack_version: str, path) -> bool:
    """Whether the package at ``path`` can be installed on the given stack version."""
    stack_version = stack_version.removesuffix("-SNAPSHOT")
    try:
        version = parse_version(stack_version)
    except ValueError as exc:
        raise ValueError(f"failed to parse stack version: {exc}") from exc

    constraint = kibana_constraint_package(path)
    if constraint is None:
        return True
    return constraint.check(version)