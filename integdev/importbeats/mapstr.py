"""Access to nested mappings through dotted keys."""

from __future__ import annotations

from typing import Any


class KeyNotFoundError(LookupError):
    """Raised when a dotted key does not exist."""

    def __init__(self, key: str = "") -> None:
        super().__init__(f"key not found: {key}" if key else "key not found")
        self.key = key


def to_mapstr(value: Any) -> dict:
    """Return ``value`` as a string-keyed mapping, or raise TypeError."""
    if isinstance(value, dict):
        if all(isinstance(key, str) for key in value):
            return value
        raise TypeError(f"expected map with string keys but got {value!r}")
    raise TypeError(f"expected map but type is {value!r}")


def _is_mapstr(value: Any) -> bool:
    return isinstance(value, dict) and all(isinstance(key, str) for key in value)


def _map_find(key: str, data: dict, create_missing: bool) -> tuple[str, dict, Any, bool]:
    full_key = key
    while True:
        if key in data:
            return key, data, data[key], True
        head, dot, rest = key.partition(".")
        if not dot:
            return key, data, None, False
        if head not in data:
            if not create_missing:
                raise KeyNotFoundError(full_key)
            data[head] = {}
        data = to_mapstr(data[head])
        key = rest


def get_value(data: dict, key: str) -> Any:
    """Value at a dotted key; a key present as-is wins over its dotted reading."""
    _, _, value, found = _map_find(key, data, False)
    if not found:
        raise KeyNotFoundError(key)
    return value


def put_value(data: dict, key: str, value: Any) -> Any:
    """Set a dotted key, creating intermediate mappings; return the old value."""
    sub_key, sub_map, old, _ = _map_find(key, data, True)
    sub_map[sub_key] = value
    return old


def delete_value(data: dict, key: str) -> None:
    """Remove a dotted key."""
    sub_key, sub_map, _, found = _map_find(key, data, False)
    if not found:
        raise KeyNotFoundError(key)
    del sub_map[sub_key]


def flatten(data: dict) -> dict:
    """Collapse nested mappings into one mapping with dotted keys."""
    out: dict = {}

    def visit(prefix: str, mapping: dict) -> None:
        for key, value in mapping.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if _is_mapstr(value):
                visit(full_key, value)
            else:
                out[full_key] = value

    visit("", data)
    return out