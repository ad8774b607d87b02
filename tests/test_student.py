from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Enrollment, User

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

def _token(client, email, role, **extra):
    body = {"first_mid_name": "Test", "last_name": "User", "email": email,
            "password": "secret123", "role": role, **extra}
    r = client.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.get_json()
    return {"Authorization": f"Bearer {r.get_json()['token']}"}

@pytest.fixture()
def admin(client):
    return _token(client, "admin@example.com", 3)

def _student(client, headers, email="alan@example.com", **over):
    body = {"first_mid_name": "Alan", "last_name": "Turing", "email": email,
            "enrollment_date": "2021-09-01T00:00:00", "password": "secret123", **over}
    return client.post("/api/student", json=body, headers=headers)

@pytest.fixture()
def catalog(client, admin):
    """CS с двумя курсами и преподаватель, ведущий только первый."""
    d = client.post("/api/department", json={"name": "CS", "budget": 1, "start_date": "2020-09-01T00:00:00"},
                    headers=admin).get_json()
    algo = client.post("/api/courses", json={"title": "Algorithms", "credits": 4, "department_id": d["id"]},
                       headers=admin).get_json()
    dbs = client.post("/api/courses", json={"title": "Databases", "credits": 3, "department_id": d["id"]},
                      headers=admin).get_json()
    inst = client.post("/api/instructor", headers=admin, json={
        "first_mid_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com",
        "hire_date": "2021-01-15T00:00:00", "password": "secret123",
    }).get_json()
    client.post(f"/api/instructor/{inst['id']}/courses/{algo['id']}", headers=admin)
    return {"dept": d, "algo": algo, "dbs": dbs, "inst": inst}

def test_student_round_trip(client, admin):
    r = _student(client, admin, phone_number="555")
    assert r.status_code == 201
    created = r.get_json()
    assert "password" not in created and "password_hash" not in created
    got = client.get(f"/api/student/{created['id']}", headers=admin).get_json()
    assert got == created
    assert got["enrollment_date"] == "2021-09-01T00:00:00"

def test_create_requires_password(client, admin):
    r = _student(client, admin, password=None)
    assert r.status_code == 400
    assert r.get_json()["field"] == "password"

def test_duplicate_email_conflict(client, admin):
    assert _student(client, admin).status_code == 201
    assert _student(client, admin, email="ALAN@example.com").status_code == 409

def test_only_students_are_visible(client, admin):
    s = _student(client, admin).get_json()
    js = client.get("/api/student", headers=admin).get_json()
    assert [x["id"] for x in js["items"]] == [s["id"]]
    # администратор не студент
    me = client.get("/api/auth/me", headers=admin).get_json()
    assert client.get(f"/api/student/{me['id']}", headers=admin).status_code == 404

def test_update_keeps_password_unless_given(app, client, admin):
    s = _student(client, admin).get_json()
    body = {"first_mid_name": "Alan M.", "last_name": "Turing", "email": "alan@example.com",
            "enrollment_date": "2021-09-01T00:00:00"}
    r = client.put(f"/api/student/{s['id']}", json=body, headers=admin)
    assert r.status_code == 200
    assert r.get_json()["full_name"] == "Alan M. Turing"
    with app.app_context():
        assert db.session.get(User, s["id"]).check_password("secret123")

    r = client.put("/api/student", json={**body, "id": s["id"], "password": "another1"}, headers=admin)
    assert r.status_code == 200
    with app.app_context():
        assert db.session.get(User, s["id"]).check_password("another1")

def test_student_role_cannot_write(client, admin):
    s = _student(client, admin).get_json()
    student = _token(client, "s2@example.com", 1)
    assert client.get("/api/student", headers=student).status_code == 200
    assert _student(client, student, email="x@example.com").status_code == 403
    assert client.delete(f"/api/student/{s['id']}", headers=student).status_code == 403
    assert client.get("/api/student").status_code == 401

def test_search(client, admin, catalog):
    alan = _student(client, admin).get_json()
    grace = _student(client, admin, email="grace@example.com", first_mid_name="Grace", last_name="Hopper").get_json()
    client.post("/api/enrollment", json={"course_id": catalog["algo"]["id"], "student_id": alan["id"]}, headers=admin)
    client.post("/api/enrollment", json={"course_id": catalog["dbs"]["id"], "student_id": alan["id"]}, headers=admin)
    client.post("/api/enrollment", json={"course_id": catalog["dbs"]["id"], "student_id": grace["id"]}, headers=admin)

    by_inst = client.get(f"/api/student/search/instructor/{catalog['inst']['id']}", headers=admin).get_json()
    assert [s["id"] for s in by_inst["items"]] == [alan["id"]]

    by_course = client.get(f"/api/student/search/course/{catalog['dbs']['id']}", headers=admin).get_json()
    assert [s["last_name"] for s in by_course["items"]] == ["Hopper", "Turing"]

    r = client.get(f"/api/student/search?user_id={grace['id']}", headers=admin).get_json()
    assert [s["id"] for s in r["items"]] == [grace["id"]]

    r = client.get(f"/api/student/search?course_id={catalog['dbs']['id']}&instructor_id={catalog['inst']['id']}",
                   headers=admin).get_json()
    assert [s["id"] for s in r["items"]] == [alan["id"]]

    assert client.get("/api/student/search", headers=admin).status_code == 400
    assert client.get("/api/student/search/course/999", headers=admin).status_code == 404

def test_delete_removes_enrollments(app, client, admin, catalog):
    s = _student(client, admin).get_json()
    client.post("/api/enrollment", json={"course_id": catalog["algo"]["id"], "student_id": s["id"]}, headers=admin)
    r = client.delete(f"/api/student/{s['id']}", headers=admin)
    assert r.status_code == 200
    with app.app_context():
        assert db.session.get(User, s["id"]) is None
        assert Enrollment.query.count() == 0
    assert client.delete(f"/api/student/{s['id']}", headers=admin).status_code == 404
