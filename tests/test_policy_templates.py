from types import SimpleNamespace

import pytest

from integdev.importbeats.policy_templates import (
    PolicyTemplateContent,
    adjust_data_stream_names_for_input_description,
    to_policy_template_description,
    to_policy_template_description_for_two_types,
    to_policy_template_input_description,
    to_policy_template_input_title,
    to_policy_template_title,
    to_policy_template_title_for_two_types,
    update_policy_template,
)


def _data_stream(name, *inputs):
    streams = [SimpleNamespace(input=i) for i in inputs]
    return SimpleNamespace(name=name, manifest=SimpleNamespace(streams=streams))


def test_update_policy_template_collects_data_stream_names():
    content = update_policy_template(
        PolicyTemplateContent(),
        "nginx",
        "Nginx",
        "metrics",
        [_data_stream("a", "nginx/metrics"), _data_stream("b", "nginx/metrics")],
        {"nginx/metrics": ["shared"]},
    )
    assert content.module_name == "nginx"
    assert content.module_title == "Nginx"
    item = content.inputs["nginx/metrics"]
    assert item.data_stream_names == ["a", "b"]
    assert item.package_type == "metrics"
    assert item.vars == ["shared"]


def test_update_policy_template_keeps_earlier_inputs():
    first = update_policy_template(
        PolicyTemplateContent(), "nginx", "Nginx", "logs", [_data_stream("access", "logfile")], {}
    )
    second = update_policy_template(
        first, "nginx", "Nginx", "metrics", [_data_stream("stubstatus", "nginx/metrics")], {}
    )
    assert set(second.inputs) == {"logfile", "nginx/metrics"}
    assert second.inputs["logfile"].package_type == "logs"
    assert first.inputs.keys() == {"logfile"}


def test_to_metadata_policy_templates_single_type():
    content = update_policy_template(
        PolicyTemplateContent(), "nginx", "Nginx", "metrics",
        [_data_stream("stubstatus", "nginx/metrics")], {},
    )
    [template] = content.to_metadata_policy_templates()
    assert template.name == "nginx"
    assert template.title == to_policy_template_title("Nginx", "metrics")
    assert template.description == to_policy_template_description("Nginx", "metrics")
    [policy_input] = template.inputs
    assert policy_input.type == "nginx/metrics"
    assert policy_input.title == to_policy_template_input_title(
        "Nginx", "metrics", ["stubstatus"], "nginx/metrics"
    )


def test_to_metadata_policy_templates_two_types_orders_inputs():
    content = update_policy_template(
        PolicyTemplateContent(), "nginx", "Nginx", "metrics",
        [_data_stream("stubstatus", "nginx/metrics")], {},
    )
    content = update_policy_template(
        content, "nginx", "Nginx", "logs", [_data_stream("access", "logfile")], {}
    )
    [template] = content.to_metadata_policy_templates()
    assert template.title == to_policy_template_title_for_two_types("Nginx", "logs", "metrics")
    assert template.description == to_policy_template_description_for_two_types(
        "Nginx", "logs", "metrics"
    )
    assert [i.type for i in template.inputs] == ["logfile", "nginx/metrics"]


def test_to_metadata_policy_templates_without_inputs():
    with pytest.raises(ValueError):
        PolicyTemplateContent(module_name="x", module_title="X").to_metadata_policy_templates()


def test_simple_titles():
    assert to_policy_template_title("Nginx", "metrics") == "Nginx metrics"
    assert to_policy_template_description("Nginx", "logs") == "Collect logs from Nginx instances"


def test_input_title_lists_data_streams():
    title = to_policy_template_input_title("Nginx", "logs", ["access", "error", "log"], "logs")
    assert title == "Collect Nginx access, error and application logs"


def test_input_title_mentions_non_log_input():
    title = to_policy_template_input_title("Nginx", "logs", ["access"], "httpjson")
    assert title.endswith(" (input: httpjson)")
    metrics = to_policy_template_input_title("Nginx", "metrics", ["access"], "httpjson")
    assert "(input:" not in metrics


def test_input_description():
    description = to_policy_template_input_description("Nginx", "logs", ["log"], "logs")
    assert description == "Collecting application logs from Nginx instances"


def test_input_title_requires_data_streams():
    with pytest.raises(ValueError):
        to_policy_template_input_title("Nginx", "logs", [], "logs")


def test_adjust_data_stream_names():
    assert adjust_data_stream_names_for_input_description(["log", "access"]) == [
        "application",
        "access",
    ]