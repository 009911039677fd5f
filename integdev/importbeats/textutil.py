"""Small string helpers."""

from __future__ import annotations

from typing import Iterable


def unique_string_values(values: Iterable[str]) -> list[str]:
    """The values without duplicates, in order of first appearance."""
    return list(dict.fromkeys(values))


def split_filename_ext(path: str) -> tuple[str, str]:
    """Split the last path segment into name and extension at its last dot."""
    file_name = path.rsplit("/", 1)[-1]
    name, dot, ext = file_name.rpartition(".")
    if not dot:
        raise ValueError("filename doesn't have an extension")
    return name, ext