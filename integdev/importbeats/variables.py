"""Configuration variables of imported streams."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable

import yaml

from integdev.importbeats.mapstr import flatten
from integdev.importbeats.registry import Variable

IGNORED_CONFIG_OPTIONS = ("module", "metricsets", "enabled")


def _dump_yaml(value: Any) -> str:
    try:
        return yaml.safe_dump(value, default_flow_style=False, allow_unicode=True)
    except yaml.YAMLError as exc:
        raise ValueError(f"marshalling object configuration variable failed: {exc}") from exc


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _variable_from_dict(data: Any) -> Variable:
    if not isinstance(data, dict):
        raise ValueError(f"variable definition is not a mapping: {data!r}")
    return Variable(
        name=_text(data.get("name")),
        type=_text(data.get("type")),
        title=_text(data.get("title")),
        multi=bool(data.get("multi", False)),
        required=bool(data.get("required", False)),
        show_user=bool(data.get("show_user", False)),
        default=data.get("default"),
    )


def _typed_default(name: str, value: Any) -> tuple[str, Any, bool]:
    """The variable type, the default to store and whether it is a list."""
    variable_type = determine_input_variable_type(name, value)
    if variable_type == "yaml":
        return variable_type, _dump_yaml(value), False
    return variable_type, value, isinstance(value, list)


def create_log_stream_variables(manifest_file) -> list[Variable]:
    """The variables declared under ``var`` in a fileset manifest, in package form."""
    try:
        raw = yaml.safe_load(manifest_file)
    except yaml.YAMLError as exc:
        raise ValueError(f"unmarshalling manifest file failed: {exc}") from exc
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise ValueError("unmarshalling manifest file failed: not a mapping")
    entries = raw.get("var") or []
    if not isinstance(entries, list):
        raise ValueError("unmarshalling manifest file failed: 'var' is not a list")
    return adjust_variables_format(_variable_from_dict(entry) for entry in entries)


def adjust_variables_format(variables: Iterable[Variable]) -> list[Variable]:
    """Set title, type, requirement, visibility and multiplicity from each default."""
    adjusted = []
    for variable in variables:
        variable_type, default, is_array = _typed_default(variable.name, variable.default)
        adjusted.append(
            replace(
                variable,
                default=default,
                title=to_variable_title(variable.name),
                type=variable_type,
                required=determine_input_variable_is_required(default),
                show_user=True,
                multi=is_array,
            )
        )
    return adjusted


def create_metric_stream_variables(
    config_file_content, module_name: str, data_stream_name: str
) -> list[Variable]:
    """Variables of a metricset taken from the module's sample configurations.

    The first occurrence of an option wins; the result is sorted by name.
    """
    if not config_file_content:
        return []
    try:
        module_config = yaml.safe_load(config_file_content)
    except yaml.YAMLError as exc:
        raise ValueError(f"unmarshalling module config failed: {exc}") from exc
    if module_config is None:
        return []
    if not isinstance(module_config, list):
        raise ValueError("unmarshalling module config failed: not a list")

    found: set[str] = set()
    variables: list[Variable] = []
    prefix = f"{data_stream_name}."
    for entry in module_config:
        if entry is None:
            entry = {}
        if not isinstance(entry, dict):
            raise ValueError(f"unmarshalling module config failed: entry is not a mapping: {entry!r}")
        flat_entry = flatten(entry)
        related = is_config_entry_related_to_metricset(flat_entry, data_stream_name)

        for name, value in flat_entry.items():
            if should_config_option_be_ignored(name, value) or name in found:
                continue
            if not (related or name.startswith(prefix)):
                continue
            variable_type, default, is_array = _typed_default(name, value)
            variables.append(
                Variable(
                    name=name,
                    type=variable_type,
                    title=to_variable_title(name),
                    multi=is_array,
                    required=determine_input_variable_is_required(default),
                    show_user=True,
                    default=default,
                )
            )
            found.add(name)

    variables.sort(key=lambda variable: variable.name)
    return variables


def should_config_option_be_ignored(option_name: str, value: Any) -> bool:
    """Whether the option is unset or one that is never exposed as a variable."""
    return value is None or option_name in IGNORED_CONFIG_OPTIONS


def is_config_entry_related_to_metricset(entry: dict, data_stream_name: str) -> bool:
    """Whether the entry's ``metricsets`` list names the data stream."""
    metricsets = entry.get("metricsets")
    if not isinstance(metricsets, list):
        return False
    for metricset in metricsets:
        if not isinstance(metricset, str):
            raise ValueError(f"metricset name is not a string: {metricset!r}")
        if metricset == data_stream_name:
            return True
    return False


def determine_input_variable_is_required(value: Any) -> bool:
    """A variable without a default, or with an empty string default, is optional."""
    if value is None:
        return False
    return not (isinstance(value, str) and value == "")


def determine_input_variable_type(name: Any, value: Any) -> str:
    """The variable type that fits the value, or the first item of a list."""
    if isinstance(value, list):
        if not value:
            return "text"
        return determine_input_variable_type(name, value[0])
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "integer"
    if name == "password":
        return "password"
    if value is None or isinstance(value, str):
        return "text"
    return "yaml"


def _is_separator(char: str) -> bool:
    if char.isascii():
        return not (char.isalnum() or char == "_")
    if char.isalpha() or char.isdigit():
        return False
    return char.isspace()


def to_variable_title(name: str) -> str:
    """A title made of the option name's words, each starting in upper case."""
    name = name.replace("_", " ").replace(".", " ")
    out = []
    previous = " "
    for char in name:
        if _is_separator(previous):
            upper = char.upper()
            out.append(upper if len(upper) == 1 else char)
        else:
            out.append(char)
        previous = char
    return "".join(out)