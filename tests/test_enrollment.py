from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Enrollment

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

@pytest.fixture()
def cs(client, admin):
    d = client.post("/api/department", json={"name": "CS", "budget": 100000, "start_date": "2020-09-01T00:00:00"},
                    headers=admin).get_json()
    algo = client.post("/api/courses", json={"title": "Algorithms", "credits": 4, "department_id": d["id"]},
                       headers=admin).get_json()
    alan = client.post("/api/student", headers=admin, json={
        "first_mid_name": "Alan", "last_name": "Turing", "email": "alan@example.com",
        "enrollment_date": "2021-09-01T00:00:00", "password": "secret123",
    }).get_json()
    return {"dept": d, "algo": algo, "alan": alan}

def test_cs_algorithms_scenario(client, admin, cs):
    r = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"],
                                             "grade": 88.5}, headers=admin)
    assert r.status_code == 201
    e = r.get_json()
    detail = client.get(f"/api/enrollment/{e['id']}", headers=admin).get_json()
    assert detail["course_name"] == "Algorithms"
    assert detail["department_name"] == "CS"
    assert detail["credits"] == 4
    assert detail["student_name"] == "Alan Turing"
    assert detail["student_email"] == "alan@example.com"
    assert detail["grade"] == 88.5

    # кафедру с курсом удалить нельзя, и ничего не меняется
    assert client.delete(f"/api/department/{cs['dept']['id']}", headers=admin).status_code == 409
    assert client.get(f"/api/enrollment/{e['id']}", headers=admin).get_json() == detail

def test_duplicate_enrollment_conflict(app, client, admin, cs):
    body = {"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]}
    assert client.post("/api/enrollment", json=body, headers=admin).status_code == 201
    r = client.post("/api/enrollment", json=body, headers=admin)
    assert r.status_code == 409
    assert r.get_json()["message"] == "The student is already enrolled in this course."
    with app.app_context():
        assert Enrollment.query.count() == 1

def test_duplicate_via_update_conflict(app, client, admin, cs):
    other = client.post("/api/courses", json={"title": "Databases", "credits": 3, "department_id": cs["dept"]["id"]},
                        headers=admin).get_json()
    first = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]},
                        headers=admin).get_json()
    second = client.post("/api/enrollment", json={"course_id": other["id"], "student_id": cs["alan"]["id"]},
                         headers=admin).get_json()
    r = client.put(f"/api/enrollment/{second['id']}", headers=admin,
                   json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]})
    assert r.status_code == 409
    with app.app_context():
        assert db.session.get(Enrollment, second["id"]).course_id == other["id"]
        assert db.session.get(Enrollment, first["id"]).course_id == cs["algo"]["id"]

def test_update_grade(client, admin, cs):
    e = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]},
                    headers=admin).get_json()
    assert e["grade"] is None
    r = client.put("/api/enrollment", headers=admin,
                   json={"id": e["id"], "course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"], "grade": 75})
    assert r.status_code == 200
    assert r.get_json()["grade"] == 75

def test_reference_checks(client, admin, cs):
    r = client.post("/api/enrollment", json={"course_id": 999, "student_id": cs["alan"]["id"]}, headers=admin)
    assert r.status_code == 404 and r.get_json()["field"] == "course_id"
    r = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": 999}, headers=admin)
    assert r.status_code == 404 and r.get_json()["field"] == "student_id"

    me = client.get("/api/auth/me", headers=admin).get_json()
    r = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": me["id"]}, headers=admin)
    assert r.status_code == 400
    assert r.get_json()["message"] == "The specified user is not registered as a student."

    r = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"],
                                             "grade": 101}, headers=admin)
    assert r.status_code == 400 and r.get_json()["field"] == "grade"

def test_by_student_and_by_course(client, admin, cs):
    e = client.post("/api/enrollment", json={"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]},
                    headers=admin).get_json()
    by_student = client.get(f"/api/enrollment/student/{cs['alan']['id']}", headers=admin).get_json()
    assert [x["id"] for x in by_student["items"]] == [e["id"]]
    by_course = client.get(f"/api/enrollment/course/{cs['algo']['id']}", headers=admin).get_json()
    assert by_course["meta"]["total"] == 1
    assert client.get("/api/enrollment/course/999", headers=admin).get_json()["items"] == []

def test_role_policy(client, admin, cs):
    body = {"course_id": cs["algo"]["id"], "student_id": cs["alan"]["id"]}
    student = _token(client, "s2@example.com", 1)
    assert client.post("/api/enrollment", json=body).status_code == 401
    assert client.post("/api/enrollment", json=body, headers=student).status_code == 403
    e = client.post("/api/enrollment", json=body, headers=admin).get_json()
    assert client.get(f"/api/enrollment/{e['id']}", headers=student).status_code == 200
    assert client.delete(f"/api/enrollment/{e['id']}", headers=student).status_code == 403
    assert client.delete(f"/api/enrollment/{e['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/enrollment/{e['id']}", headers=admin).status_code == 404
