import pytest

from integdev.importbeats.elasticsearch import (
    IngestPipelineContent,
    adjust_unsupported_structures_in_pipeline,
    build_single_ingest_pipeline_target_name,
    determine_ingest_pipeline_target_name,
    ensure_pipeline_format,
    load_elasticsearch_content,
    validate_ingest_pipeline,
)


def test_single_target_name():
    assert build_single_ingest_pipeline_target_name("ingest/pipeline-plain.json") == "default.json"


def test_single_target_name_without_extension():
    with pytest.raises(ValueError):
        build_single_ingest_pipeline_target_name("ingest/pipeline")


@pytest.mark.parametrize(
    "path, expected",
    [
        ("ingest/pipeline.json", "default.json"),
        ("ingest/pipeline-entry.yml", "default.yml"),
        ("ingest/pipeline-plaintext.json", "pipeline-plaintext.json"),
    ],
)
def test_determine_target_name(path, expected):
    assert determine_ingest_pipeline_target_name(path) == expected


def test_ensure_pipeline_format():
    assert ensure_pipeline_format("ingest/pipeline.{{.format}}") == "ingest/pipeline.json"
    assert ensure_pipeline_format("ingest/pipeline.yml") == "ingest/pipeline.yml"


def test_adjust_removes_conditionals():
    assert adjust_unsupported_structures_in_pipeline(b"a{< if .x >}b{< end >}c") == b"abc"


def test_adjust_converts_ingest_pipeline_reference():
    data = b'name: "{< IngestPipeline "pipeline-json" >}"'
    assert adjust_unsupported_structures_in_pipeline(data) == (
        b"name: \"{{ IngestPipeline 'pipeline-json' }}\""
    )


def test_adjust_marks_other_placeholders():
    assert adjust_unsupported_structures_in_pipeline(b"x: {< .foo >}") == b"x: FIX_ME"


def test_validate_accepts_json_and_yaml():
    validate_ingest_pipeline(IngestPipelineContent("default.json", b'{"processors": []}'))
    validate_ingest_pipeline(IngestPipelineContent("default.yml", b"---\nprocessors: []\n"))
    with pytest.raises(ValueError):
        validate_ingest_pipeline(IngestPipelineContent("default.json", b"{broken"))


def test_validate_rejects_unsupported_extension():
    with pytest.raises(ValueError, match="unsupported pipeline extension"):
        validate_ingest_pipeline(IngestPipelineContent("default.txt", b"{}"))


def test_validate_rejects_yaml_list():
    with pytest.raises(ValueError):
        validate_ingest_pipeline(IngestPipelineContent("default.yml", b"- a\n- b\n"))


def test_load_missing_manifest(tmp_path):
    assert load_elasticsearch_content(str(tmp_path)) == []


def test_load_single_yaml_pipeline(tmp_path):
    (tmp_path / "manifest.yml").write_text("ingest_pipeline: ingest/pipeline.yml\n")
    (tmp_path / "ingest").mkdir()
    (tmp_path / "ingest" / "pipeline.yml").write_text("processors: []\n")
    contents = load_elasticsearch_content(str(tmp_path))
    assert [c.target_file_name for c in contents] == ["default.yml"]
    assert contents[0].body.startswith(b"---\n")
    assert contents[0].body.endswith(b"processors: []\n")


def test_load_multiple_json_pipelines(tmp_path):
    (tmp_path / "manifest.yml").write_text(
        "ingest_pipeline:\n  - ingest/pipeline-entry.json\n  - ingest/pipeline-json.json\n"
    )
    (tmp_path / "ingest").mkdir()
    (tmp_path / "ingest" / "pipeline-entry.json").write_text('{"processors": []}')
    (tmp_path / "ingest" / "pipeline-json.json").write_text('{"processors": []}')
    contents = load_elasticsearch_content(str(tmp_path))
    assert [c.target_file_name for c in contents] == ["default.json", "pipeline-json.json"]
    assert all(c.body == b'{"processors": []}' for c in contents)


def test_load_format_placeholder(tmp_path):
    (tmp_path / "manifest.yml").write_text("ingest_pipeline: ingest/pipeline.{{.format}}\n")
    (tmp_path / "ingest").mkdir()
    (tmp_path / "ingest" / "pipeline.json").write_text('{"processors": []}')
    contents = load_elasticsearch_content(str(tmp_path))
    assert [c.target_file_name for c in contents] == ["default.json"]


def test_load_manifest_without_pipeline(tmp_path):
    (tmp_path / "manifest.yml").write_text("title: x\n")
    assert load_elasticsearch_content(str(tmp_path)) == []


def test_load_missing_pipeline_file(tmp_path):
    (tmp_path / "manifest.yml").write_text("ingest_pipeline: ingest/pipeline.json\n")
    with pytest.raises(OSError):
        load_elasticsearch_content(str(tmp_path))


def test_load_invalid_pipeline_body(tmp_path):
    (tmp_path / "manifest.yml").write_text("ingest_pipeline: ingest/pipeline.json\n")
    (tmp_path / "ingest").mkdir()
    (tmp_path / "ingest" / "pipeline.json").write_text("[1, 2]")
    with pytest.raises(ValueError, match="validation of modified ingest pipeline failed"):
        load_elasticsearch_content(str(tmp_path))