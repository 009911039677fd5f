"""Documentation templates and the exported fields tables they embed."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Mapping

from integdev.importbeats.fields import FieldDefinition


@dataclass(frozen=True)
class FieldsTableRecord:
    """One row of an exported fields table."""

    name: str
    description: str
    type: str


@dataclass(frozen=True)
class DocContent:
    """A documentation file and the template it is rendered from, if any."""

    file_name: str
    template_path: str = ""


def create_doc_templates(package_docs_path) -> list[DocContent]:
    """The README document, using the package's template when one exists."""
    readme_path = os.path.join(package_docs_path, "README.md")
    try:
        os.stat(readme_path)
    except FileNotFoundError:
        readme_path = ""
    except OSError as exc:
        raise OSError(f"reading README template failed: {exc}") from exc
    return [DocContent(file_name="README.md", template_path=readme_path)]


def _visit_fields(prefix: str, field: FieldDefinition, records: list[FieldsTableRecord]) -> None:
    name = f"{prefix}.{field.name}" if prefix else field.name
    if not field.fields and field.type != "group":
        records.append(FieldsTableRecord(name, field.description, field.type))
        return
    for child in field.fields:
        _visit_fields(name, child, records)


def collect_fields_from_file(field_definitions: Iterable[FieldDefinition]) -> list[FieldsTableRecord]:
    """Table rows for every leaf field of one fields file."""
    records: list[FieldsTableRecord] = []
    for field in field_definitions:
        _visit_fields("", field, records)
    return records


def unique_table_records(records: Iterable[FieldsTableRecord]) -> list[FieldsTableRecord]:
    """The records with only the first one kept for each name."""
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.name not in seen:
            seen.add(record.name)
            unique.append(record)
    return unique


def collect_fields(files: Mapping[str, Iterable[FieldDefinition]]) -> list[FieldsTableRecord]:
    """Rows from all fields files, sorted by name and without duplicate names."""
    records = [
        record for definitions in files.values() for record in collect_fields_from_file(definitions)
    ]
    records.sort(key=lambda record: record.name)
    return unique_table_records(records)


def render_exported_fields(package_data_stream: str, data_streams) -> str:
    """A Markdown table of a data stream's fields.

    Each data stream must have a ``name`` and a ``fields`` mapping from fields
    file name to field definitions.
    """
    for data_stream in data_streams:
        if data_stream.name != package_data_stream:
            continue
        parts = ["**Exported fields**", "\n\n"]
        collected = collect_fields(data_stream.fields)
        if not collected:
            parts.append("(no fields available)")
            return "".join(parts)
        parts.append("| Field | Description | Type |\n")
        parts.append("|---|---|---|\n")
        for record in collected:
            description = record.description.replace("\n", " ").strip()
            parts.append(f"| {record.name} | {description} | {record.type} |\n")
        return "".join(parts)
    raise ValueError(f"missing dataStream: {package_data_stream}")