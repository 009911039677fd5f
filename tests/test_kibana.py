import pytest

from integdev.citools.kibana import (
    is_package_supported_in_stack_version,
    kibana_constraint_package,
)
from integdev.citools.semver import parse_constraint


def _manifest(tmp_path, contents):
    path = tmp_path / "manifest.yml"
    path.write_text(contents)
    return path


@pytest.mark.parametrize(
    "contents,expected",
    [
        ('name: "version"\nconditions:\n  kibana:\n    version: "^8.0.0"\n', "^8.0.0"),
        ('name: "version"\nconditions:\n  kibana.version: "^8.0.0"\n', "^8.0.0"),
        ('name: "version"\n', None),
    ],
    ids=["defined", "dotted", "not defined"],
)
def test_kibana_constraint_package(tmp_path, contents, expected):
    constraint = kibana_constraint_package(_manifest(tmp_path, contents))
    if expected is None:
        assert constraint is None
    else:
        assert constraint == parse_constraint(expected)


@pytest.mark.parametrize(
    "stack_version,contents,supported",
    [
        ("8.18.0", 'name: "stack"\nconditions:\n  kibana:\n    version: "^8.0.0"\n', True),
        ("8.18.0", 'name: "stack"\nconditions:\n  kibana:\n    version: "^8.0.0 || ^9.0.0"\n', True),
        ("8.18.0-SNAPSHOT", 'name: "stack"\nconditions:\n  kibana:\n    version: "^8.0.0 || ^9.0.0"\n', True),
        ("8.18.0-SNAPSHOT", 'name: "stack"\nconditions:\n  kibana:\n    version: ">=8.0.0"\n', True),
        ("8.18.0-SNAPSHOT", 'name: "stack"\nconditions:\n  kibana:\n    version: "^9.0.0"\n', False),
        ("8.18.0-SNAPSHOT", 'name: "stack"\n', True),
    ],
    ids=["simple", "or", "snapshot", "greater or equal", "not supported", "missing"],
)
def test_is_package_supported_in_stack_version(tmp_path, stack_version, contents, supported):
    path = _manifest(tmp_path, contents)
    assert is_package_supported_in_stack_version(stack_version, path) is supported


def test_invalid_stack_version(tmp_path):
    path = _manifest(tmp_path, 'name: "stack"\n')
    with pytest.raises(ValueError):
        is_package_supported_in_stack_version("not-a-version", path)


def test_invalid_constraint(tmp_path):
    path = _manifest(tmp_path, 'name: "stack"\nconditions:\n  kibana.version: "^^"\n')
    with pytest.raises(ValueError):
        kibana_constraint_package(path)