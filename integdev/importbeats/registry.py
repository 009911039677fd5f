"""Package registry metadata: manifests, streams, variables, conditions and changelogs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

CHANGELOG_HEADER = "# newer versions go on top"


@dataclass
class Variable:
    """A configuration variable of an input or stream."""

    name: str
    type: str = "text"
    title: str = ""
    description: str = ""
    multi: bool = False
    required: bool = False
    show_user: bool = False
    default: Any = None

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "type": self.type}
        if self.title:
            data["title"] = self.title
        if self.description:
            data["description"] = self.description
        data["multi"] = self.multi
        data["required"] = self.required
        data["show_user"] = self.show_user
        if self.default is not None:
            data["default"] = self.default
        return data


@dataclass
class Stream:
    """A stream of a data stream, bound to one input type."""

    input: str
    title: str = ""
    description: str = ""
    template_path: str = ""
    vars: list[Variable] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict = {"input": self.input, "title": self.title, "description": self.description}
        if self.template_path:
            data["template_path"] = self.template_path
        if self.vars:
            data["vars"] = [variable.to_dict() for variable in self.vars]
        return data


@dataclass
class Image:
    """An icon or screenshot listed in a package manifest."""

    src: str
    title: str = ""
    size: str = ""
    type: str = ""

    def to_dict(self) -> dict:
        return {"src": self.src, "title": self.title, "size": self.size, "type": self.type}


@dataclass
class PolicyInput:
    """An input of a policy template."""

    type: str
    title: str = ""
    description: str = ""
    vars: list[Variable] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict = {"type": self.type, "title": self.title, "description": self.description}
        if self.vars:
            data["vars"] = [variable.to_dict() for variable in self.vars]
        return data


@dataclass
class PolicyTemplate:
    """A policy template of a package."""

    name: str
    title: str = ""
    description: str = ""
    inputs: list[PolicyInput] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputs": [item.to_dict() for item in self.inputs],
        }


@dataclass
class Conditions:
    """Requirements a package puts on the stack."""

    kibana_version: str = ""

    def to_dict(self) -> dict:
        if not self.kibana_version:
            return {}
        return {"kibana": {"version": self.kibana_version}}


@dataclass
class DataStreamManifest:
    """The manifest of a data stream."""

    title: str
    release: str = "experimental"
    type: str = ""
    streams: list[Stream] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "release": self.release,
            "type": self.type,
            "streams": [stream.to_dict() for stream in self.streams],
        }


@dataclass
class Change:
    """One change in a changelog entry."""

    description: str
    type: str
    link: str = ""


@dataclass
class ChangelogEntry:
    """The changes made in one version."""

    version: str
    changes: list[Change] = field(default_factory=list)


def _change_dict(change: Change) -> dict:
    data = {"description": change.description, "type": change.type}
    if change.link:
        data["link"] = change.link
    return data


def create_conditions() -> Conditions:
    """Conditions given to every imported package."""
    return Conditions(kibana_version="^7.15.0")


def new_changelog(init_version: str) -> list[ChangelogEntry]:
    """A changelog with only the initial release; its link is left for the author."""
    return [
        ChangelogEntry(
            init_version,
            [Change("initial release", "enhancement", "")],
        )
    ]


def changelog_to_yaml(entries: list[ChangelogEntry]) -> str:
    """The changelog as YAML, newest entries first as given, under a header comment."""
    document = [
        {"version": entry.version, "changes": [_change_dict(c) for c in entry.changes]}
        for entry in entries
    ]
    body = yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    return f"{CHANGELOG_HEADER}\n{body}"