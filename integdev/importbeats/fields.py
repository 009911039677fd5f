"""Field definitions: loading, filtering against ECS and preparing for output."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from dataclasses import field as dc_field
from typing import Any, Iterable

import yaml

_STRING_KEYS = (
    "name",
    "key",
    "title",
    "level",
    "type",
    "format",
    "description",
    "release",
    "alias",
    "path",
    "footnote",
)


@dataclass
class MultiFieldDefinition:
    """An additional mapping of a field under another name."""

    name: str = ""
    type: str = ""
    norms: bool | None = None
    default_field: bool | None = None


@dataclass
class FieldDefinition:
    """One entry of a fields file; groups hold their children in ``fields``."""

    name: str = ""
    key: str = ""
    title: str = ""
    group: int | None = None
    level: str = ""
    required: bool | None = None
    type: str = ""
    format: str = ""
    description: str = ""
    release: str = ""
    alias: str = ""
    path: str = ""
    footnote: str = ""
    ignore_above: int | None = None
    multi_fields: list[MultiFieldDefinition] = dc_field(default_factory=list)
    fields: list[FieldDefinition] = dc_field(default_factory=list)
    migration: bool | None = None
    skipped: bool = dc_field(default=False, repr=False, compare=False)

    def to_dict(self) -> dict:
        """The definition as a mapping, leaving out empty and unset entries."""
        items = (
            ("name", self.name),
            ("key", self.key),
            ("title", self.title),
            ("group", self.group),
            ("level", self.level),
            ("required", self.required),
            ("type", self.type),
            ("format", self.format),
            ("description", self.description),
            ("release", self.release),
            ("alias", self.alias),
            ("path", self.path),
            ("footnote", self.footnote),
            ("ignore_above", self.ignore_above),
            ("multi_fields", [_multi_field_to_dict(m) for m in self.multi_fields]),
            ("fields", [child.to_dict() for child in self.fields]),
            ("migration", self.migration),
        )
        return {key: value for key, value in items if not _is_empty(value)}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list)) and len(value) == 0)


def _multi_field_to_dict(multi: MultiFieldDefinition) -> dict:
    items = (
        ("name", multi.name),
        ("type", multi.type),
        ("norms", multi.norms),
        ("default_field", multi.default_field),
    )
    return {key: value for key, value in items if not _is_empty(value)}


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"field attribute {key!r} is not a scalar: {value!r}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field attribute {key!r} is not an integer: {value!r}")
    return value


def _bool(data: dict, key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValueError(f"field attribute {key!r} is not a boolean: {value!r}")
    return value


def _list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field attribute {key!r} is not a list: {value!r}")
    return value


def _multi_field_from_dict(data: Any) -> MultiFieldDefinition:
    if not isinstance(data, dict):
        raise ValueError(f"multi field definition is not a mapping: {data!r}")
    return MultiFieldDefinition(
        name=_string(data, "name"),
        type=_string(data, "type"),
        norms=_bool(data, "norms"),
        default_field=_bool(data, "default_field"),
    )


def field_from_dict(data: Any) -> FieldDefinition:
    """Build a field definition from a parsed YAML mapping; unknown keys are ignored."""
    if not isinstance(data, dict):
        raise ValueError(f"field definition is not a mapping: {data!r}")
    return FieldDefinition(
        **{key: _string(data, key) for key in _STRING_KEYS},
        group=_int(data, "group"),
        required=_bool(data, "required"),
        ignore_above=_int(data, "ignore_above"),
        multi_fields=[_multi_field_from_dict(m) for m in _list(data, "multi_fields")],
        fields=[field_from_dict(child) for child in _list(data, "fields")],
        migration=_bool(data, "migration"),
    )


def collect_field_names(name_prefix: str, field: FieldDefinition) -> list[str]:
    """Dotted names of the leaves under ``field``."""
    name = f"{name_prefix}.{field.name}" if name_prefix else field.name
    if not field.fields:
        return [name]
    return [n for child in field.fields for n in collect_field_names(name, child)]


def field_names(fields: Iterable[FieldDefinition]) -> list[str]:
    """Dotted names of all leaves of the given definitions."""
    return [name for f in fields for name in collect_field_names("", f)]


def stripped(fields: Iterable[FieldDefinition]) -> list[FieldDefinition]:
    """Copies of the definitions with the descriptions of groups removed."""
    return [
        replace(
            f,
            description="" if f.type == "group" else f.description,
            fields=stripped(f.fields),
        )
        for f in fields
    ]


def load_default_field_values(fields: Iterable[FieldDefinition]) -> list[FieldDefinition]:
    """Copies of the definitions where a missing type becomes ``keyword``."""
    return [
        replace(f, type=f.type or "keyword", fields=load_default_field_values(f.fields))
        for f in fields
    ]


def load_fields_file(path) -> list[FieldDefinition]:
    """Read a fields file; a missing file yields no fields."""
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(f"reading fields failed (path: {path}): {exc}") from exc

    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(f"unmarshalling fields file failed (path: {path}): {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"unmarshalling fields file failed (path: {path}): not a list")
    try:
        definitions = [field_from_dict(item) for item in raw]
    except ValueError as exc:
        raise ValueError(f"unmarshalling fields file failed (path: {path}): {exc}") from exc
    return load_default_field_values(definitions)


def load_ecs_fields(ecs_dir) -> list[FieldDefinition]:
    """The fields under the single root of the generated ECS fields file."""
    roots = load_fields_file(os.path.join(ecs_dir, "generated", "beats", "fields.ecs.yml"))
    if len(roots) != 1:
        return []
    return roots[0].fields


def load_module_fields(module_path) -> tuple[list[FieldDefinition], str]:
    """A module's fields and title, together with its ``fields.epr.yml`` entries."""
    roots = load_fields_file(os.path.join(module_path, "_meta", "fields.yml"))
    if len(roots) != 1:
        return [], ""
    title = roots[0].title
    extra = load_fields_file(os.path.join(module_path, "_meta", "fields.epr.yml"))
    return [*roots[0].fields, *extra], title


def load_data_stream_fields(module_path, module_name: str, data_stream_name: str) -> list[FieldDefinition]:
    """A data stream's fields, their top-level names prefixed with the module name."""
    meta = os.path.join(module_path, data_stream_name, "_meta")
    own = [
        replace(f, name=f"{module_name}.{f.name}")
        for f in load_fields_file(os.path.join(meta, "fields.yml"))
    ]
    extra = load_fields_file(os.path.join(meta, "fields.epr.yml"))
    return [*own, *extra]


def _filter_migrated(field: FieldDefinition, ecs_names: list[str], found: list[str]) -> FieldDefinition:
    if not field.fields:
        skipped = field.skipped
        if field.type == "alias":
            if field.migration:
                skipped = True
            if field.path in ecs_names:
                found.append(field.path)
                skipped = True
        return replace(field, skipped=skipped)

    children = (_filter_migrated(child, ecs_names, found) for child in field.fields)
    return replace(field, fields=[child for child in children if not child.skipped])


def filter_migrated_fields(
    fields: Iterable[FieldDefinition], ecs_field_names: Iterable[str]
) -> tuple[list[FieldDefinition], list[str]]:
    """Drop nested aliases that are migrated or point at ECS fields.

    Returns the filtered definitions and the ECS field names the dropped aliases
    pointed at.
    """
    ecs_names = list(ecs_field_names)
    found: list[str] = []
    filtered = [_filter_migrated(f, ecs_names, found) for f in fields]
    return filtered, found


def is_package_fields(file_name: str) -> bool:
    """Whether the file holds the package-level fields."""
    return file_name == "package-fields.yml"


def _visit_ecs(prefix: str, field: FieldDefinition, names: set[str]) -> tuple[FieldDefinition, bool]:
    name = f"{prefix}.{field.name}" if prefix else field.name
    if not field.fields and field.type != "group":
        return field, name in names

    kept = []
    for child in field.fields:
        visited, checked = _visit_ecs(name, child, names)
        if checked:
            kept.append(visited)
    return replace(field, fields=kept), bool(kept)


def filter_ecs_fields(
    ecs_fields: Iterable[FieldDefinition], filtered_names: Iterable[str]
) -> list[FieldDefinition]:
    """Keep only the ECS leaves whose dotted names are listed, with their groups."""
    names = set(filtered_names)
    result = []
    for f in ecs_fields:
        visited, checked = _visit_ecs("", f, names)
        if checked:
            result.append(visited)
    return result


def create_base_fields() -> list[FieldDefinition]:
    """The fields every data stream carries."""
    return [
        FieldDefinition(
            name="data_stream.type",
            type="constant_keyword",
            description="Data stream type.",
        ),
        FieldDefinition(
            name="data_stream.dataset",
            type="constant_keyword",
            description="Data stream dataset.",
        ),
        FieldDefinition(
            name="data_stream.namespace",
            type="constant_keyword",
            description="Data stream namespace.",
        ),
        FieldDefinition(
            name="@timestamp",
            type="date",
            description="Event timestamp.",
        ),
    ]


BASE_FIELDS = create_base_fields()