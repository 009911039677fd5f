"""Ingest pipelines of imported data streams."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any

import yaml

from integdev.importbeats.textutil import split_filename_ext

logger = logging.getLogger(__name__)

_RE_UNSUPPORTED_IF = re.compile(rb"\{<[ ]?if[^(>})]+>\}")
_RE_UNSUPPORTED_INGEST_PIPELINE = re.compile(rb"('|\")\{< (IngestPipeline).+>\}('|\")")
_RE_UNSUPPORTED_PLACEHOLDER = re.compile(rb"\{<.+>\}")


@dataclass
class IngestPipelineContent:
    """An ingest pipeline file and its contents."""

    target_file_name: str
    body: bytes


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"expected a scalar ingest pipeline but got {value!r}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _ingest_pipelines(manifest: bytes, manifest_path: str) -> list[str]:
    try:
        raw = yaml.safe_load(manifest)
    except yaml.YAMLError as exc:
        raise ValueError(
            f"unmarshalling dataStream manifest file failed (path: {manifest_path}): {exc}"
        ) from exc
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise ValueError(
            f"unmarshalling dataStream manifest file failed (path: {manifest_path}): not a mapping"
        )
    value = raw.get("ingest_pipeline")
    try:
        if isinstance(value, list):
            return [_scalar(item) for item in value]
        single = _scalar(value)
    except ValueError as exc:
        raise ValueError(
            f"unmarshalling dataStream manifest file failed (path: {manifest_path}): {exc}"
        ) from exc
    return [single] if single else []


def build_single_ingest_pipeline_target_name(path: str) -> str:
    """The target name of a data stream's only pipeline."""
    try:
        _, ext = split_filename_ext(path)
    except ValueError as exc:
        raise ValueError(f"processing filename failed (path: {path}): {exc}") from exc
    return "default." + ext


def ensure_pipeline_format(ingest_pipeline: str) -> str:
    """Resolve the ``{{.format}}`` placeholder to JSON."""
    return ingest_pipeline.replace("{{.format}}", "json")


def determine_ingest_pipeline_target_name(path: str) -> str:
    """The target name of one of several pipelines; the entry pipeline is the default."""
    try:
        name, ext = split_filename_ext(path)
    except ValueError as exc:
        raise ValueError(f"processing filename failed (path: {path}): {exc}") from exc
    if name in ("pipeline", "pipeline-entry"):
        return "default." + ext
    return f"{name}.{ext}"


def _fix_ingest_pipeline_reference(match: re.Match) -> bytes:
    found = match.group(0).replace(b"{<", b"{{").replace(b">}", b"}}")
    if found[:1] == b'"':
        found = b'"' + found.replace(b'"', b"'")[1:-1] + b'"'
    return found


def adjust_unsupported_structures_in_pipeline(data: bytes) -> bytes:
    """Drop conditionals, convert pipeline references and mark other placeholders."""
    data = _RE_UNSUPPORTED_IF.sub(b"", data)
    data = data.replace(b"{< end >}", b"")
    data = _RE_UNSUPPORTED_INGEST_PIPELINE.sub(_fix_ingest_pipeline_reference, data)
    return _RE_UNSUPPORTED_PLACEHOLDER.sub(b"FIX_ME", data)


def validate_ingest_pipeline(content: IngestPipelineContent) -> None:
    """Raise ValueError unless the body parses as a mapping in its format."""
    try:
        _, ext = split_filename_ext(content.target_file_name)
    except ValueError as exc:
        raise ValueError(
            f"processing filename failed (path: {content.target_file_name}): {exc}"
        ) from exc

    if ext == "json":
        try:
            document = json.loads(content.body)
        except ValueError as exc:
            raise ValueError(f"invalid JSON pipeline: {exc}") from exc
    elif ext == "yml":
        try:
            document = next(iter(yaml.safe_load_all(content.body)), None)
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid YAML pipeline: {exc}") from exc
    else:
        raise ValueError(f"unsupported pipeline extension (path: {content.target_file_name})")

    if document is not None and not isinstance(document, dict):
        raise ValueError(f"pipeline is not a mapping (path: {content.target_file_name})")


def load_elasticsearch_content(data_stream_path) -> list[IngestPipelineContent]:
    """The ingest pipelines named by a data stream's manifest, ready for a package."""
    manifest_path = os.path.join(data_stream_path, "manifest.yml")
    try:
        with open(manifest_path, "rb") as handle:
            manifest = handle.read()
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(
            f"reading dataStream manifest file failed (path: {manifest_path}): {exc}"
        ) from exc

    pipelines = _ingest_pipelines(manifest, manifest_path)
    contents = []
    for pipeline in pipelines:
        pipeline = ensure_pipeline_format(pipeline)
        logger.info("ingest-pipeline found: %s", pipeline)

        if len(pipelines) == 1:
            target = build_single_ingest_pipeline_target_name(pipeline)
        else:
            target = determine_ingest_pipeline_target_name(pipeline)

        pipeline_path = os.path.join(data_stream_path, pipeline)
        try:
            with open(pipeline_path, "rb") as handle:
                body = handle.read()
        except OSError as exc:
            raise OSError(f"reading pipeline body failed (path: {pipeline_path}): {exc}") from exc

        if target.endswith(".yml") and body.find(b"---") != 0:
            body = b"---\n" + body

        content = IngestPipelineContent(target, adjust_unsupported_structures_in_pipeline(body))
        try:
            validate_ingest_pipeline(content)
        except ValueError as exc:
            raise ValueError(
                "validation of modified ingest pipeline failed "
                f"(original path: {pipeline_path}): {exc}"
            ) from exc
        contents.append(content)
    return contents