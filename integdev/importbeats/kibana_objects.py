"""Converting Kibana saved objects of beat modules into package assets."""

from __future__ import annotations

import json
from typing import Any, Iterable

from integdev.importbeats.mapstr import (
    KeyNotFoundError,
    delete_value,
    get_value,
    put_value,
    to_mapstr,
)

ENCODED_FIELDS = (
    "attributes.kibanaSavedObjectMeta.searchSourceJSON",
    "attributes.layerListJSON",
    "attributes.mapStateJSON",
    "attributes.optionsJSON",
    "attributes.panelsJSON",
    "attributes.uiStateJSON",
    "attributes.visState",
)

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class KibanaConversionError(Exception):
    """Raised when a Kibana object cannot be prepared, migrated or verified."""


def _parse_float(text: str) -> float | int:
    number = float(text)
    if number.is_integer() and abs(number) < 1e21:
        return int(number)
    return number


def _load(data) -> Any:
    return json.loads(data, parse_float=_parse_float)


def _dumps(value: Any, indent: int | None = None) -> str:
    try:
        text = json.dumps(
            value,
            sort_keys=True,
            ensure_ascii=False,
            allow_nan=False,
            indent=indent,
            separators=(",", ":") if indent is None else None,
        )
    except (TypeError, ValueError) as exc:
        raise KibanaConversionError(f"marshalling value failed: {exc}") from exc
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text


def _lookup(obj: dict, key: str) -> tuple[bool, Any]:
    """Whether ``key`` exists and its value; a non-mapping on the way is an error."""
    try:
        return True, get_value(obj, key)
    except KeyNotFoundError:
        return False, None
    except TypeError as exc:
        raise KibanaConversionError(f"retrieving value failed (key: {key}): {exc}") from exc


def _require(obj: dict, key: str, what: str) -> Any:
    try:
        return get_value(obj, key)
    except (KeyNotFoundError, TypeError) as exc:
        raise KibanaConversionError(f"retrieving {what} failed: {exc}") from exc


def _put(obj: dict, key: str, value: Any) -> None:
    try:
        put_value(obj, key, value)
    except TypeError as exc:
        raise KibanaConversionError(f"putting value failed (key: {key}): {exc}") from exc


def _delete(obj: dict, key: str) -> None:
    try:
        delete_value(obj, key)
    except (KeyNotFoundError, TypeError) as exc:
        raise KibanaConversionError(f"removing field {key} failed: {exc}") from exc


def encode_fields(obj: dict) -> dict:
    """Serialise the known embedded-JSON attributes to strings, in place."""
    for key in ENCODED_FIELDS:
        found, value = _lookup(obj, key)
        if not found or isinstance(value, str):
            continue
        _put(obj, key, _dumps(value))
    return obj


def decode_fields(obj: dict) -> dict:
    """Parse the known embedded-JSON string attributes into objects, in place."""
    for key in ENCODED_FIELDS:
        found, value = _lookup(obj, key)
        if not found:
            continue
        if not isinstance(value, str):
            raise KibanaConversionError(f"expected string value (key: {key})")
        try:
            target = _load(value)
        except ValueError as exc:
            raise KibanaConversionError(f"unmarshalling value failed (key: {key}): {exc}") from exc
        if isinstance(target, list):
            if not all(item is None or isinstance(item, dict) for item in target):
                raise KibanaConversionError(
                    f"unmarshalling value failed (key: {key}): expected objects"
                )
        elif target is not None and not isinstance(target, dict):
            raise KibanaConversionError(
                f"unmarshalling value failed (key: {key}): expected object or array"
            )
        _put(obj, key, target)
    return obj


def prepare_dashboard_file(dashboard_file: bytes) -> tuple[bytes, bool]:
    """Rename beat indices and encode embedded JSON.

    Returns the prepared document and whether it is a full dashboard export that
    still needs to go through Kibana's import API.
    """
    dashboard_file = dashboard_file.replace(b"metricbeat-*", b"metrics-*")
    dashboard_file = dashboard_file.replace(b"filebeat-*", b"logs-*")

    try:
        document = _load(dashboard_file)
    except ValueError as exc:
        raise KibanaConversionError(f"unmarshalling dashboard file failed: {exc}") from exc
    if document is None:
        return b"null", False
    if not isinstance(document, dict):
        raise KibanaConversionError("unmarshalling dashboard file failed: not an object")

    objects = document.get("objects")
    if objects is None:
        objects = []
    if not isinstance(objects, list) or not all(
        item is None or isinstance(item, dict) for item in objects
    ):
        raise KibanaConversionError("unmarshalling dashboard file failed: invalid objects")
    version = document.get("version")
    if version is None:
        version = ""
    if not isinstance(version, str):
        raise KibanaConversionError("unmarshalling dashboard file failed: invalid version")

    if not objects:
        encode_fields(document)
        return _dumps(document).encode("utf-8"), False

    for item in objects:
        if item is not None:
            encode_fields(item)
    documents = {"objects": objects, "version": version}
    return _dumps(documents).encode("utf-8"), True


def strip_references_to_event_module_in_filter(obj: dict, filter_key: str, module_name: str) -> dict:
    """Replace ``event.module`` filters with a data stream dataset prefix query."""
    found, filter_value = _lookup(obj, filter_key)
    if not found or not isinstance(filter_value, list) or not filter_value:
        return obj

    updated = []
    for item in filter_value:
        try:
            filter_object = to_mapstr(item)
        except TypeError as exc:
            raise KibanaConversionError(f"converting to mapstr failed: {exc}") from exc
        meta_key = _require(filter_object, "meta.key", "meta.key")
        if meta_key == "event.module":
            _put(filter_object, "meta.key", "query")
            _put(filter_object, "meta.type", "custom")
            _put(
                filter_object,
                "meta.value",
                '{"prefix":{"data_stream.dataset":"%s."}}' % module_name,
            )
            _delete(filter_object, "meta.params")
            _put(
                filter_object,
                "query",
                {"prefix": {"data_stream.dataset": module_name + "."}},
            )
        updated.append(filter_object)

    _put(obj, filter_key, updated)
    return obj


def strip_references_to_event_module_in_query(
    obj: dict, object_key: str, module_name: str, data_stream_names: Iterable[str]
) -> dict:
    """Rewrite ``event.module`` references in a query to data stream datasets."""
    try:
        object_value = get_value(obj, object_key)
    except (KeyNotFoundError, TypeError):
        return obj
    if not isinstance(object_value, dict):
        return obj

    language_key = object_key + ".language"
    query_key = object_key + ".query"
    found, query = _lookup(obj, query_key)
    if not found or not isinstance(query, str) or not query:
        return obj

    query = query.replace(": ", ":").replace(" :", ":").replace('"', "")
    module_term = "event.module:" + module_name
    if module_term in query and ("metricset.name:" in query or "fileset.name:" in query):
        query = query.replace(module_term, "")
        query = query.replace("metricset.name:", f"data_stream.dataset:{module_name}.")
        query = query.replace("fileset.name:", f"data_stream.dataset:{module_name}.")
        query = query.strip()
        if query.startswith("AND "):
            query = query[4:]
        _put(obj, query_key, query)
    elif module_term in query:
        datasets = " OR ".join(
            f"data_stream.dataset:{module_name}.{name}" for name in data_stream_names
        )
        query = query.replace(module_term, f" ({datasets}) ").strip()
        _put(obj, query_key, query)
        _put(obj, language_key, "kuery")
    return obj


def strip_references_to_event_module(
    obj: dict, module_name: str, data_stream_names: Iterable[str]
) -> dict:
    """Remove references to ``event.module`` from filters and queries of an object."""
    names = list(data_stream_names)
    strip_references_to_event_module_in_filter(
        obj, "attributes.kibanaSavedObjectMeta.searchSourceJSON.filter", module_name
    )
    strip_references_to_event_module_in_query(
        obj, "attributes.kibanaSavedObjectMeta.searchSourceJSON.query", module_name, names
    )
    strip_references_to_event_module_in_query(
        obj, "attributes.visState.params.filter", module_name, names
    )
    return obj


def _string_value(obj: dict, key: str, what: str) -> str:
    value = _require(obj, key, what)
    if not isinstance(value, str):
        raise KibanaConversionError(f"expected {what} to be a string")
    return value


def migrate_object(obj: dict, module_name: str, data_stream_names: Iterable[str]) -> tuple[bytes, str]:
    """Turn a saved object into package form; return its JSON and its new ID."""
    _delete(obj, "updated_at")
    _delete(obj, "version")
    decode_fields(obj)
    strip_references_to_event_module(obj, module_name, data_stream_names)

    new_id = update_object_id(_string_value(obj, "id", "id"), module_name)
    _put(obj, "id", new_id)

    references = _require(obj, "references", "references")
    if not isinstance(references, list):
        raise KibanaConversionError("expected references to be an array of objects")
    for reference in references:
        if not isinstance(reference, dict):
            raise KibanaConversionError("expected reference to be an object")
        if _string_value(reference, "type", "reference type") == "index-pattern":
            continue
        ref_id = _string_value(reference, "id", "reference id")
        _put(reference, "id", update_object_id(ref_id, module_name))

    data = _dumps(obj, indent=4).encode("utf-8")
    data = replace_field_event_dataset_with_data_stream_dataset(data)
    data = replace_blacklisted_words(data)
    data = remove_ecs_textual_suffixes(data)
    verify_kibana_object_conversion(data)
    return data, new_id


def migrate_kibana_objects(
    objects: Iterable[dict], module_name: str, data_stream_names: Iterable[str]
) -> tuple[dict[str, dict[str, bytes]], dict[str, str]]:
    """Migrate objects, grouped by type and file name, with a map of old to new IDs."""
    names = list(data_stream_names)
    extracted: dict[str, dict[str, bytes]] = {}
    id_map: dict[str, str] = {}
    for obj in objects:
        object_type = _string_value(obj, "type", "type")
        orig_id = _string_value(obj, "id", "id")
        data, new_id = migrate_object(obj, module_name, names)
        id_map[orig_id] = new_id
        extracted.setdefault(object_type, {})[new_id + ".json"] = data
    return extracted, id_map


def replace_field_event_dataset_with_data_stream_dataset(data: bytes) -> bytes:
    """Use ``data_stream.dataset`` in place of ``event.dataset``."""
    return data.replace(b"event.dataset", b"data_stream.dataset")


def replace_blacklisted_words(data: bytes) -> bytes:
    """Replace beat and module wording with integration wording."""
    for old, new in (
        (b"Metricbeat", b"Metrics"),
        (b"metricbeat", b"metrics"),
        (b"Filebeat", b"Logs"),
        (b"filebeat", b"logs"),
        (b"Module", b"Integration"),
        (b"module", b"integration"),
    ):
        data = data.replace(old, new)
    return data


def update_dashboard_links(data: bytes, orig_id: str, new_id: str) -> bytes:
    """Point dashboard links at a dashboard's new ID."""
    return data.replace(
        ("#/dashboard/" + orig_id).encode("utf-8"), ("#/dashboard/" + new_id).encode("utf-8")
    )


def remove_ecs_textual_suffixes(data: bytes) -> bytes:
    """Drop the `` ECS`` suffix from titles."""
    return data.replace(b" ECS", b"")


def update_object_id(orig_id: str, module_name: str) -> str:
    """Prefix the ID with the lower-case module name and drop an ``-ecs`` suffix."""
    prefix = module_name + "-"
    new_id = orig_id
    if new_id.lower().startswith(prefix):
        new_id = new_id[len(prefix):]
    new_id = prefix + new_id
    new_id = new_id.removesuffix("-ecs")
    if new_id == orig_id:
        new_id += "-pkg"
    return new_id


def verify_kibana_object_conversion(data: bytes) -> None:
    """Raise if ``event.module`` or ``event.dataset`` is still referenced."""
    for term in (b"event.module", b"event.dataset"):
        position = data.find(term)
        if position > 0:
            raise KibanaConversionError(
                f"{term.decode()} spotted at pos. {position}"
            )