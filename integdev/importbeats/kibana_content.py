"""Collecting a module's Kibana objects and migrating them into package assets."""

from __future__ import annotations

import base64
import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from integdev.importbeats.kibana_objects import (
    KibanaConversionError,
    migrate_kibana_objects,
    prepare_dashboard_file,
    replace_blacklisted_words,
    update_dashboard_links,
)

logger = logging.getLogger(__name__)

KibanaFiles = dict[str, dict[str, bytes]]


def _parse_float(text: str) -> float | int:
    number = float(text)
    if number.is_integer() and abs(number) < 1e21:
        return int(number)
    return number


def _load(data) -> Any:
    return json.loads(data, parse_float=_parse_float)


@dataclass
class KibanaMigrator:
    """Access to a Kibana instance used to migrate old dashboard exports."""

    host_port: str
    username: str = ""
    password: str = field(default="", repr=False)
    skip_kibana: bool = False

    def migrate_dashboard_file(
        self, dashboard_file: bytes, module_name: str, data_stream_names: Iterable[str]
    ) -> bytes:
        """Import a dashboard export into Kibana and return the migrated objects."""
        url = f"{self.host_port}/api/kibana/dashboards/import?force=true"
        request = urllib.request.Request(url, data=bytes(dashboard_file), method="POST")
        request.add_header("kbn-xsrf", "8.0.0")
        request.add_header("Content-Type", "application/json")
        if self.username:
            credentials = base64.b64encode(
                f"{self.username}:{self.password}".encode("utf-8")
            ).decode("ascii")
            request.add_header("Authorization", f"Basic {credentials}")
        try:
            with urllib.request.urlopen(request) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            body = exc.read()
            raise KibanaConversionError(
                f"making POST request failed: {body.decode('utf-8', 'replace')}"
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise KibanaConversionError(f"making POST request to Kibana failed: {exc}") from exc
        if status != 200:
            raise KibanaConversionError(
                f"making POST request failed: {body.decode('utf-8', 'replace')}"
            )
        return body


def _walk_files(root: str) -> Iterator[str]:
    if not os.path.isdir(root):
        yield root
        return
    for name in sorted(os.listdir(root)):
        path = os.path.join(root, name)
        if os.path.isdir(path):
            yield from _walk_files(path)
        else:
            yield path


def convert_to_kibana_objects(
    dashboard_file: bytes, module_name: str, data_stream_names: Iterable[str]
) -> tuple[KibanaFiles, dict[str, str]]:
    """Migrate every object of a dashboard export returned by Kibana."""
    try:
        document = _load(dashboard_file)
    except ValueError as exc:
        raise KibanaConversionError(f"unmarshalling migrated dashboard file failed: {exc}") from exc
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise KibanaConversionError("unmarshalling migrated dashboard file failed: not an object")
    objects = document.get("objects") or []
    if not isinstance(objects, list) or not all(isinstance(item, dict) for item in objects):
        raise KibanaConversionError("unmarshalling migrated dashboard file failed: invalid objects")
    return migrate_kibana_objects(objects, module_name, data_stream_names)


def convert_single_object(
    object_file: bytes, module_name: str, data_stream_names: Iterable[str]
) -> tuple[KibanaFiles, dict[str, str]]:
    """Migrate a single saved object."""
    try:
        obj = _load(object_file)
    except ValueError as exc:
        raise KibanaConversionError(f"unmarshalling saved object file failed: {exc}") from exc
    if not isinstance(obj, dict):
        raise KibanaConversionError("unmarshalling saved object file failed: not an object")
    return migrate_kibana_objects([obj], module_name, data_stream_names)


def extract_kibana_object(
    migrator: KibanaMigrator, path, module: str, data_streams: Iterable[str]
) -> tuple[KibanaFiles, dict[str, str]]:
    """Read one Kibana file and migrate the objects it holds."""
    names = list(data_streams)
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise OSError(f"reading dashboard file failed (path: {path}): {exc}") from exc

    prepared, needs_migration = prepare_dashboard_file(content)
    if needs_migration:
        migrated = migrator.migrate_dashboard_file(prepared, module, names)
        return convert_to_kibana_objects(migrated, module, names)
    return convert_single_object(prepared, module, names)


def create_kibana_content(
    migrator: KibanaMigrator, module_path, module_name: str, data_stream_names: Iterable[str]
) -> KibanaFiles:
    """Kibana assets of a module, by object type and file name."""
    if migrator.skip_kibana:
        logger.info("Kibana migrator disabled, skipped (modulePath: %s)", module_path)
        return {}

    names = list(data_stream_names)
    files: KibanaFiles = {}
    kibana_path = os.path.join(module_path, "_meta", "kibana", "7")
    if not os.path.exists(kibana_path):
        return files

    dashboard_ids: dict[str, str] = {}
    for path in _walk_files(kibana_path):
        logger.info("kibana file found: %s", os.path.basename(path))
        extracted, id_map = extract_kibana_object(migrator, path, module_name, names)
        dashboard_ids.update(id_map)
        for object_type, objects in extracted.items():
            target = files.setdefault(object_type, {})
            for file_name, data in objects.items():
                key = replace_blacklisted_words(file_name.encode("utf-8")).decode("utf-8")
                target[key] = data

    for objects in files.values():
        for file_name, data in objects.items():
            for orig_id, new_id in dashboard_ids.items():
                data = update_dashboard_links(data, orig_id, new_id)
            objects[file_name] = data
    return files