from __future__ import annotations
import json
import logging
import re

import pytest

from app import create_app
from blueprints.core.routes import JSONFormatter
from extensions import db

@pytest.fixture()
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()

@pytest.fixture()
def client(app):
    return app.test_client()

def test_health_ok(client):
    rv = client.get("/health")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["status"] == "ok"
    assert re.fullmatch(r"[0-9a-f]{32}", data["request_id"]), "ожидаем uuid4 hex"

def test_request_id_is_echoed(client):
    rv = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert rv.headers["X-Request-ID"] == "abc-123"
    assert rv.get_json()["request_id"] == "abc-123"

def test_unknown_route_is_json_404(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "not_found"

def test_non_object_body_is_400(client):
    rv = client.post("/api/auth/login", json=[1, 2, 3])
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "validation_error"

def test_payload_error_names_field(client):
    rv = client.post("/api/auth/register", json={
        "first_mid_name": "A", "last_name": "B", "email": "not-an-email",
        "password": "secret123", "role": 1,
    })
    assert rv.status_code == 400
    body = rv.get_json()
    assert body["error"] == "validation_error"
    assert body["field"] == "email"

def test_json_formatter_renders_extra_fields():
    record = logging.LogRecord("blueprints.x", logging.INFO, __file__, 1, "department deleted", None, None)
    record.event = "delete"
    record.entity = "department"
    record.entity_id = 7
    record.user_id = 3
    line = json.loads(JSONFormatter().format(record))
    assert line["msg"] == "department deleted"
    assert line["level"] == "INFO"
    assert (line["event"], line["entity"], line["entity_id"], line["user_id"]) == ("delete", "department", 7, 3)
    assert "path" not in line
