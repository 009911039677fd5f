"""Checks for LogsDB index mode support."""

from __future__ import annotations

from integdev.citools.kibana import kibana_constraint_package
from integdev.citools.semver import Version, parse_version

_LOGSDB_GA = parse_version("8.17.0")
_LAST_8_X = parse_version("8.19.99")
_LAST_9_X = parse_version("9.99.99")


def is_version_less_than_logsdb_ga(version: Version) -> bool:
    """Whether ``version`` predates the general availability of LogsDB."""
    return version < _LOGSDB_GA


def is_logsdb_supported_in_package(path) -> bool:
    """Whether the package at ``path`` can run with LogsDB enabled."""
    constraint = kibana_constraint_package(path)
    if constraint is None:
        return True
    # Checking the last 8.x and 9.x releases: a constraint such as
    # "^8.18.0 || ^9.0.0" would reject the GA version itself.
    return constraint.check(_LAST_8_X) or constraint.check(_LAST_9_X)