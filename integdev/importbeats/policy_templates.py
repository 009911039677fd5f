"""Policy templates of imported packages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from integdev.importbeats.registry import PolicyInput, PolicyTemplate, Variable
from integdev.importbeats.textutil import unique_string_values


@dataclass
class PolicyTemplateInput:
    """An input of a policy template and the data streams that use it."""

    package_type: str
    input_type: str
    vars: list[Variable] = field(default_factory=list)
    data_stream_names: list[str] = field(default_factory=list)


@dataclass
class PolicyTemplateContent:
    """The inputs collected for a module's policy template, by input type."""

    module_name: str = ""
    module_title: str = ""
    inputs: dict[str, PolicyTemplateInput] = field(default_factory=dict)

    def to_metadata_policy_templates(self) -> list[PolicyTemplate]:
        """The policy template for the package manifest."""
        package_types = sorted(
            unique_string_values(item.package_type for item in self.inputs.values())
        )
        if not package_types:
            raise ValueError("policy template has no inputs")

        if len(package_types) == 2:
            title = to_policy_template_title_for_two_types(
                self.module_title, package_types[0], package_types[1]
            )
            description = to_policy_template_description_for_two_types(
                self.module_title, package_types[0], package_types[1]
            )
        else:
            title = to_policy_template_title(self.module_title, package_types[0])
            description = to_policy_template_description(self.module_title, package_types[0])

        inputs = [
            PolicyInput(
                type=item.input_type,
                title=to_policy_template_input_title(
                    self.module_title, package_type, item.data_stream_names, input_type
                ),
                description=to_policy_template_input_description(
                    self.module_title, package_type, item.data_stream_names, input_type
                ),
                vars=item.vars,
            )
            for package_type in package_types
            for input_type, item in self.inputs.items()
            if item.package_type == package_type
        ]
        return [
            PolicyTemplate(
                name=self.module_name,
                title=title,
                description=description,
                inputs=inputs,
            )
        ]


def update_policy_template(
    content: PolicyTemplateContent,
    module_name: str,
    module_title: str,
    package_type: str,
    data_streams: Iterable,
    input_vars: Mapping[str, list[Variable]],
) -> PolicyTemplateContent:
    """Add the inputs used by the data streams' streams to the template content."""
    inputs = dict(content.inputs)
    for data_stream in data_streams:
        for stream in data_stream.manifest.streams:
            input_type = stream.input
            current = inputs.get(input_type)
            if current is None:
                current = PolicyTemplateInput(
                    package_type=package_type,
                    input_type=input_type,
                    vars=list(input_vars.get(input_type) or []),
                )
            inputs[input_type] = replace(
                current, data_stream_names=[*current.data_stream_names, data_stream.name]
            )
    return PolicyTemplateContent(module_name=module_name, module_title=module_title, inputs=inputs)


def to_policy_template_title(module_title: str, package_type: str) -> str:
    return f"{module_title} {package_type}"


def to_policy_template_description(module_title: str, package_type: str) -> str:
    return f"Collect {package_type} from {module_title} instances"


def to_policy_template_title_for_two_types(
    module_title: str, first_package_type: str, second_package_type: str
) -> str:
    return f"{module_title} {first_package_type} and {second_package_type}"


def to_policy_template_description_for_two_types(
    module_title: str, first_package_type: str, second_package_type: str
) -> str:
    return f"Collect {first_package_type} and {second_package_type} from {module_title} instances"


def _enumerate_names(data_streams: Iterable[str]) -> str:
    names = adjust_data_stream_names_for_input_description(data_streams)
    if not names:
        raise ValueError("no data streams given")
    *first, last = names
    if first:
        return ", ".join(first) + " and " + last
    return last


def _input_suffix(package_type: str, input_type: str) -> str:
    if package_type == "logs" and input_type != "logs":
        return f" (input: {input_type})"
    return ""


def to_policy_template_input_title(
    module_title: str, package_type: str, data_streams: Iterable[str], input_type: str
) -> str:
    listed = _enumerate_names(data_streams)
    return f"Collect {module_title} {listed} {package_type}" + _input_suffix(package_type, input_type)


def to_policy_template_input_description(
    module_title: str, package_type: str, data_streams: Iterable[str], input_type: str
) -> str:
    listed = _enumerate_names(data_streams)
    return (
        f"Collecting {listed} {package_type} from {module_title} instances"
        + _input_suffix(package_type, input_type)
    )


def adjust_data_stream_names_for_input_description(names: Iterable[str]) -> list[str]:
    """The names with ``log`` shown as ``application``."""
    return ["application" if name == "log" else name for name in names]