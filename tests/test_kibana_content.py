import base64
import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from integdev.importbeats.kibana_content import (
    KibanaMigrator,
    convert_single_object,
    convert_to_kibana_objects,
    create_kibana_content,
    extract_kibana_object,
)
from integdev.importbeats.kibana_objects import KibanaConversionError, update_object_id


class _Handler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length)
        self.server.requests.append((self.path, self.headers, body))
        status = self.server.status
        payload = body if status == 200 else b'{"error":"boom"}'
        self.send_response(status)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, *args):
        pass


@pytest.fixture
def kibana_server():
    server = HTTPServer(("127.0.0.1", 0), _Handler)
    server.requests = []
    server.status = 200
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def _host(server):
    return f"http://127.0.0.1:{server.server_address[1]}"


def _saved_object(object_id, object_type, attributes):
    return {
        "id": object_id,
        "type": object_type,
        "attributes": attributes,
        "references": [],
        "updated_at": "2020-01-01T00:00:00Z",
        "version": "1",
    }


def _write(path, document):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")


def test_migrate_dashboard_file_posts_with_headers(kibana_server):
    password = "password"
    migrator = KibanaMigrator(_host(kibana_server), "elastic", password)
    result = migrator.migrate_dashboard_file(b'{"objects":[]}', "foo", ["bar"])
    assert result == b'{"objects":[]}'
    path, headers, body = kibana_server.requests[0]
    assert path == "/api/kibana/dashboards/import?force=true"
    assert headers.get("kbn-xsrf") == "8.0.0"
    scheme, encoded = headers.get("Authorization").split(" ", 1)
    assert scheme == "Basic"
    assert base64.b64decode(encoded) == b"elastic:password"


def test_migrate_dashboard_file_without_username_sends_no_auth(kibana_server):
    migrator = KibanaMigrator(_host(kibana_server))
    assert migrator.migrate_dashboard_file(b"{}", "foo", []) == b"{}"
    assert kibana_server.requests[0][1].get("Authorization") is None


def test_migrate_dashboard_file_error_status(kibana_server):
    kibana_server.status = 500
    migrator = KibanaMigrator(_host(kibana_server))
    with pytest.raises(KibanaConversionError, match="boom"):
        migrator.migrate_dashboard_file(b"{}", "foo", [])


def test_skip_kibana_returns_nothing(tmp_path):
    migrator = KibanaMigrator("http://localhost:1", skip_kibana=True)
    _write(tmp_path / "_meta" / "kibana" / "7" / "dashboard" / "a.json", {"x": 1})
    assert create_kibana_content(migrator, str(tmp_path), "foo", []) == {}


def test_missing_kibana_directory(tmp_path):
    migrator = KibanaMigrator("http://localhost:1")
    assert create_kibana_content(migrator, str(tmp_path), "foo", []) == {}


def test_single_objects_and_dashboard_links(tmp_path):
    base = tmp_path / "_meta" / "kibana" / "7"
    _write(base / "dashboard" / "dash.json", _saved_object("dash1", "dashboard", {"title": "Overview"}))
    _write(
        base / "visualization" / "vis.json",
        _saved_object("vis1", "visualization", {"description": "see #/dashboard/dash1"}),
    )
    migrator = KibanaMigrator("http://localhost:1")
    files = create_kibana_content(migrator, str(tmp_path), "foo", ["bar"])

    dash_name = update_object_id("dash1", "foo") + ".json"
    vis_name = update_object_id("vis1", "foo") + ".json"
    assert set(files) == {"dashboard", "visualization"}
    assert list(files["dashboard"]) == [dash_name]
    assert list(files["visualization"]) == [vis_name]

    vis = files["visualization"][vis_name]
    new_link = ("#/dashboard/" + update_object_id("dash1", "foo")).encode()
    assert new_link in vis
    assert b"#/dashboard/dash1" not in vis
    assert json.loads(files["dashboard"][dash_name])["id"] == update_object_id("dash1", "foo")


def test_full_dashboard_goes_through_kibana(kibana_server, tmp_path):
    document = {
        "objects": [_saved_object("Overview-ecs", "dashboard", {"title": "Overview ECS"})],
        "version": "7.9.0",
    }
    _write(tmp_path / "_meta" / "kibana" / "7" / "dashboard" / "overview.json", document)
    migrator = KibanaMigrator(_host(kibana_server))
    files = create_kibana_content(migrator, str(tmp_path), "foo", ["bar"])

    new_id = update_object_id("Overview-ecs", "foo")
    assert list(files) == ["dashboard"]
    data = json.loads(files["dashboard"][new_id + ".json"])
    assert data["id"] == new_id
    assert "updated_at" not in data and "version" not in data
    assert data["attributes"]["title"] == "Overview"
    assert len(kibana_server.requests) == 1


def test_extract_single_object_renames_beat_words(tmp_path):
    path = tmp_path / "vis.json"
    _write(path, _saved_object("vis1", "visualization", {"title": "Metricbeat thing"}))
    extracted, id_map = extract_kibana_object(KibanaMigrator("http://localhost:1"), str(path), "foo", [])
    assert id_map == {"vis1": update_object_id("vis1", "foo")}
    data = json.loads(next(iter(extracted["visualization"].values())))
    assert data["attributes"]["title"] == "Metrics thing"


def test_convert_to_kibana_objects_migrates_all():
    document = {
        "objects": [
            _saved_object("a", "visualization", {}),
            _saved_object("b", "search", {}),
        ]
    }
    extracted, id_map = convert_to_kibana_objects(json.dumps(document).encode(), "foo", [])
    assert set(extracted) == {"visualization", "search"}
    assert set(id_map) == {"a", "b"}


def test_convert_single_object_rejects_non_object():
    with pytest.raises(KibanaConversionError):
        convert_single_object(b"[1, 2]", "foo", [])


def test_convert_to_kibana_objects_rejects_invalid_json():
    with pytest.raises(KibanaConversionError):
        convert_to_kibana_objects(b"{not json", "foo", [])