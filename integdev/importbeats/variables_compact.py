"""Moving variables shared by all data streams up to the input level."""

from __future__ import annotations

from typing import Any, Iterable

import yaml

from integdev.importbeats.registry import Variable


def is_non_compactable_variable(variable: Variable) -> bool:
    """Whether the variable must stay on each stream."""
    return variable.name in ("period", "paths")


def is_variable_already_compacted(
    vars_per_input_type: dict[str, list[Variable]], variable: Variable, input_type: str
) -> bool:
    """Whether a variable of that name was already moved to the input."""
    return any(v.name == variable.name for v in vars_per_input_type.get(input_type, ()))


def _dump(value: Any) -> str:
    try:
        return yaml.safe_dump(value, default_flow_style=False).strip()
    except yaml.YAMLError as exc:
        raise ValueError(f"marshalling variable value failed: {exc}") from exc


def are_variables_equal(first: Variable, second: Variable) -> bool:
    """Whether two variables share name, type and default value."""
    if first.name != second.name or first.type != second.type:
        return False
    return _dump(first.default) == _dump(second.default)


def can_variable_be_compacted(data_streams: Iterable, variable: Variable, input_type: str) -> bool:
    """Whether every data stream carries an equal variable for the input."""
    for data_stream in data_streams:
        used = False
        for stream in data_stream.manifest.streams:
            if stream.input != input_type:
                break
            if is_non_compactable_variable(variable):
                continue
            if any(are_variables_equal(v, variable) for v in stream.vars):
                used = True
        if not used:
            return False
    return True


def compact_data_stream_variables(data_streams: Iterable) -> tuple[list, dict[str, list[Variable]]]:
    """Move shared variables from the streams to their inputs.

    The streams are updated in place. Returns the data streams and the moved
    variables by input type.
    """
    streams_list = list(data_streams)
    vars_per_input_type: dict[str, list[Variable]] = {}
    compacted = []
    for data_stream in streams_list:
        for stream in data_stream.manifest.streams:
            kept = []
            for variable in stream.vars:
                if is_variable_already_compacted(vars_per_input_type, variable, stream.input):
                    continue
                if can_variable_be_compacted(streams_list, variable, stream.input):
                    vars_per_input_type.setdefault(stream.input, []).append(variable)
                else:
                    kept.append(variable)
            stream.vars = kept
        compacted.append(data_stream)
    return compacted, vars_per_input_type