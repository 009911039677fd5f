"""Agent stream templates for imported data streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from integdev.importbeats.registry import Stream, Variable


@dataclass
class StreamContent:
    """A stream template file and its contents."""

    target_file_name: str
    body: bytes


@dataclass
class AgentContent:
    """The agent stream templates of one data stream."""

    streams: list[StreamContent] = field(default_factory=list)


def extract_input_config_filename(config_file_path: str) -> str:
    """The part of a path after its last slash."""
    return config_file_path.rsplit("/", 1)[-1]


def extract_vars_from_stream(streams: Iterable[Stream], input_name: str) -> list[Variable]:
    """The variables of the first stream bound to ``input_name``."""
    for stream in streams:
        if stream.input == input_name:
            return stream.vars
    return []


def create_agent_content_for_metrics(
    module_name: str, data_stream_name: str, streams: Iterable[Stream]
) -> AgentContent:
    """A Handlebars stream template that passes the metric stream's variables on."""
    variables = extract_vars_from_stream(streams, module_name + "/metrics")

    parts = [f'metricsets: ["{data_stream_name}"]\n']
    for variable in variables:
        name = variable.name
        if not variable.required:
            parts.append("{{#if " + name + "}}\n")
        if variable.multi:
            parts.append(name + ":\n{{#each " + name + "}}\n  - {{this}}\n{{/each}}\n")
        else:
            parts.append(name + ": {{" + name + "}}\n")
        if not variable.required:
            parts.append("{{/if}}\n")

    body = "".join(parts).encode("utf-8")
    return AgentContent(streams=[StreamContent("stream.yml.hbs", body)])