from __future__ import annotations
from datetime import datetime

import pytest
from itsdangerous import URLSafeTimedSerializer

from app import create_app
from blueprints.auth.tokens import decode_token
from extensions import db
from models import Department, Instructor, User

PASSWORD = "secret123"

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

def _register(client, email, role, **extra):
    body = {"first_mid_name": "Test", "last_name": "User", "email": email,
            "password": PASSWORD, "role": role, **extra}
    return client.post("/api/auth/register", json=body)

def _auth(token):
    return {"Authorization": f"Bearer {token}"}

def test_register_returns_token_and_user(client):
    r = _register(client, "Stu@Example.com", 1, bio="hi")
    assert r.status_code == 201
    js = r.get_json()
    assert js["token"] and js["expiration"]
    assert js["user"]["email"] == "stu@example.com"
    assert js["user"]["role"] == "STUDENT" and js["user"]["role_type"] == 1
    assert js["user"]["bio"] == "hi"

def test_register_duplicate_email_conflict(client):
    assert _register(client, "dup@example.com", "STUDENT").status_code == 201
    r = _register(client, "DUP@example.com", "STUDENT")
    assert r.status_code == 409
    assert r.get_json()["error"] == "conflict"

def test_register_unknown_role_400(client):
    r = _register(client, "x@example.com", 9)
    assert r.status_code == 400
    assert r.get_json()["field"] == "role"

def test_register_instructor_needs_department(app, client):
    r = _register(client, "prof@example.com", 2)
    assert r.status_code == 400
    assert r.get_json()["field"] == "department_id"

    with app.app_context():
        d = Department(name="Math", budget=10, start_date=datetime(2020, 1, 1))
        db.session.add(d)
        db.session.commit()
        dep_id = d.id
    r = _register(client, "prof@example.com", 2, department_id=dep_id)
    assert r.status_code == 201
    user_id = r.get_json()["user"]["id"]
    with app.app_context():
        inst = Instructor.query.filter_by(email="prof@example.com").one()
        assert inst.user_id == user_id
        assert inst.department_id == dep_id
        # первый преподаватель занимает свободное место администратора
        assert db.session.get(Department, dep_id).administrator_id == inst.id

def test_login_wrong_then_right_password(app, client):
    reg = _register(client, "admin@example.com", 3).get_json()

    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    js = r.get_json()
    assert js["error"] == "invalid_credentials"
    assert "token" not in js

    r = client.post("/api/auth/login", json={"email": "ADMIN@example.com", "password": PASSWORD})
    assert r.status_code == 200
    token = r.get_json()["token"]
    with app.test_request_context():
        claims = decode_token(token)
    assert claims["sub"] == reg["user"]["id"]
    assert claims["role"] == "ADMIN"
    assert claims["email"] == "admin@example.com"

def test_login_unknown_email_401(client):
    r = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert r.status_code == 401

def test_login_inactive_account_403(app, client):
    _register(client, "off@example.com", 1)
    with app.app_context():
        u = User.query.filter_by(email="off@example.com").one()
        u.is_active_flag = False
        db.session.commit()
    r = client.post("/api/auth/login", json={"email": "off@example.com", "password": PASSWORD})
    assert r.status_code == 403

def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.get_json()["error"] == "unauthorized"

def test_me_with_token(client):
    token = _register(client, "me@example.com", 1).get_json()["token"]
    r = client.get("/api/auth/me", headers=_auth(token))
    assert r.status_code == 200
    assert r.get_json()["email"] == "me@example.com"

def test_expired_token_401(app, client):
    token = _register(client, "late@example.com", 1).get_json()["token"]
    app.config["AUTH_TOKEN_TTL"] = -1
    r = client.get("/api/auth/me", headers=_auth(token))
    assert r.status_code == 401
    assert r.get_json()["error"] == "token_expired"

def test_tampered_and_garbage_tokens_401(app, client):
    _register(client, "t@example.com", 3)
    forged = URLSafeTimedSerializer("other-secret", salt=app.config["AUTH_TOKEN_SALT"]).dumps(
        {"sub": 1, "role": "ADMIN", "email": "t@example.com"}
    )
    for token in (forged, "not-a-token"):
        r = client.get("/api/auth/me", headers=_auth(token))
        assert r.status_code == 401
        assert r.get_json()["error"] == "invalid_token"

def test_token_of_deleted_user_401(app, client):
    token = _register(client, "gone@example.com", 1).get_json()["token"]
    with app.app_context():
        db.session.delete(User.query.filter_by(email="gone@example.com").one())
        db.session.commit()
    r = client.get("/api/auth/me", headers=_auth(token))
    assert r.status_code == 401

def test_update_profile_partial(client):
    token = _register(client, "p@example.com", 1).get_json()["token"]
    r = client.put("/api/auth/profile", headers=_auth(token),
                   json={"company": "ACME", "date_of_birth": "2000-02-29"})
    assert r.status_code == 200
    js = r.get_json()
    assert js["company"] == "ACME"
    assert js["date_of_birth"] == "2000-02-29"
    assert js["first_mid_name"] == "Test"

def test_update_profile_email_conflict(client):
    _register(client, "taken@example.com", 1)
    token = _register(client, "mine@example.com", 1).get_json()["token"]
    r = client.put("/api/auth/profile", headers=_auth(token), json={"email": "taken@example.com"})
    assert r.status_code == 409

def test_logout_is_stateless(client):
    token = _register(client, "bye@example.com", 1).get_json()["token"]
    r = client.post("/api/auth/logout", headers=_auth(token))
    assert r.status_code == 200
    assert client.post("/api/auth/logout").status_code == 401

def test_forgot_and_reset_password(client):
    _register(client, "reset@example.com", 1)
    assert client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"}).status_code == 404

    r = client.post("/api/auth/forgot-password", json={"email": "reset@example.com"})
    assert r.status_code == 200
    reset_token = r.get_json()["reset_token"]

    r = client.post("/api/auth/reset-password",
                    json={"email": "reset@example.com", "token": "bogus", "new_password": "newpass1"})
    assert r.status_code == 400
    assert r.get_json()["field"] == "token"

    r = client.post("/api/auth/reset-password",
                    json={"email": "reset@example.com", "token": reset_token, "new_password": "newpass1"})
    assert r.status_code == 200
    assert client.post("/api/auth/login", json={"email": "reset@example.com", "password": "newpass1"}).status_code == 200

    # токен одноразовый: после смены пароля он больше не подходит
    r = client.post("/api/auth/reset-password",
                    json={"email": "reset@example.com", "token": reset_token, "new_password": "another1"})
    assert r.status_code == 400

def test_profile_change_reaches_linked_instructor(app, client):
    with app.app_context():
        d = Department(name="Math", budget=10, start_date=datetime(2020, 1, 1))
        db.session.add(d)
        db.session.commit()
        dep_id = d.id
    token = _register(client, "t@example.com", 2, department_id=dep_id).get_json()["token"]
    r = client.put("/api/auth/profile", headers=_auth(token),
                   json={"email": "new@example.com", "last_name": "Renamed", "phone_number": "555-9"})
    assert r.status_code == 200
    with app.app_context():
        inst = Instructor.query.filter_by(email="new@example.com").one()
        assert (inst.last_name, inst.phone_number) == ("Renamed", "555-9")

    # правка преподавателя администратором не возвращает старый email
    admin = _auth(_register(client, "admin@example.com", 3).get_json()["token"])
    r = client.put(f"/api/instructor/{inst.id}", headers=admin, json={
        "first_mid_name": "Test", "last_name": "Renamed", "email": "new@example.com",
        "hire_date": "2021-01-15T00:00:00", "department_id": dep_id,
    })
    assert r.status_code == 200
    assert client.post("/api/auth/login", json={"email": "new@example.com", "password": PASSWORD}).status_code == 200
