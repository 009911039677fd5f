"""Reading the parts of a package manifest that CI tooling needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml


class ManifestError(Exception):
    """Raised when a package manifest cannot be read or understood."""


@dataclass(frozen=True)
class PackageManifest:
    """The subset of ``manifest.yml`` used to decide on package compatibility."""

    name: str = ""
    license: str = ""
    kibana_version: str = ""
    elastic_subscription: str = ""


def _merge(target: dict, source: dict) -> dict:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            _merge(existing, value)
        else:
            target[key] = value
    return target


def _expand_dotted(value: Any) -> Any:
    """Turn keys such as ``kibana.version`` into nested mappings."""
    if isinstance(value, dict):
        result: dict = {}
        for key, item in value.items():
            nested: Any = _expand_dotted(item)
            for part in reversed(str(key).split(".")):
                nested = {part: nested}
            _merge(result, nested)
        return result
    if isinstance(value, list):
        return [_expand_dotted(item) for item in value]
    return value


def _section(data: dict, key: str, path: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(
            f"unpacking package manifest failed (path: {path}): '{key}' is not a mapping"
        )
    return value


def _string(data: dict, key: str, path: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ManifestError(
            f"unpacking package manifest failed (path: {path}): '{key}' is not a string"
        )
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def read_package_manifest(path) -> PackageManifest:
    """Read a package manifest, accepting both nested and dotted keys."""
    try:
        with open(path, encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise ManifestError(f"reading file failed (path: {path}): {exc}") from exc
    except yaml.YAMLError as exc:
        raise ManifestError(f"reading file failed (path: {path}): {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ManifestError(
            f"unpacking package manifest failed (path: {path}): document is not a mapping"
        )

    data = _expand_dotted(raw)
    conditions = _section(data, "conditions", path)
    kibana = _section(conditions, "kibana", path)
    elastic = _section(conditions, "elastic", path)
    return PackageManifest(
        name=_string(data, "name", path),
        license=_string(data, "license", path),
        kibana_version=_string(kibana, "version", path),
        elastic_subscription=_string(elastic, "subscription", path),
    )