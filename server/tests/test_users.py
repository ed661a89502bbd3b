import json

from conftest import auth_headers, make_user

from exam_portal.models import User, UserRole


def record(email, student_id, **overrides):
    data = {
        "name": "Bulk Student",
        "email": email,
        "password": "secret123",
        "role": "student",
        "student_id": student_id,
        "school": "SOET",
        "department": "CSE",
        "specialization": "AIML",
        "semester": 2,
    }
    data.update(overrides)
    return data


def test_bulk_create_from_json(client, db, admin):
    users = [record("a@portal.edu", "5001"), record("b@portal.edu", "5002")]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 201
    assert resp.json()["message"] == "Successfully created 2 users"
    assert {u["email"] for u in resp.json()["users"]} == {"a@portal.edu", "b@portal.edu"}
    assert db.query(User).filter(User.role == UserRole.STUDENT).count() == 2


def test_bulk_create_duplicate_emails_persists_nothing(client, db, admin):
    users = [record("dup@portal.edu", "5001"), record("dup@portal.edu", "5002")]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Duplicate emails in request"
    assert resp.json()["duplicates"] == ["dup@portal.edu"]
    assert db.query(User).count() == 1


def test_bulk_create_duplicate_ids(client, db, admin):
    users = [record("a@portal.edu", "5001"), record("b@portal.edu", "5001")]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 400
    assert resp.json()["duplicates"] == ["5001"]


def test_bulk_create_existing_email(client, db, admin, student):
    users = [record(student.email, "5001"), record("b@portal.edu", "5002")]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Some emails already exist"
    assert resp.json()["emails"] == [student.email]
    assert db.query(User).count() == 2


def test_bulk_create_itemizes_invalid_records(client, db, admin):
    users = [
        record("ok@portal.edu", "5001"),
        record("bad@portal.edu", "not-a-number"),
        {"email": "nameless@portal.edu"},
    ]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Some users have missing or invalid fields"
    assert [item["index"] for item in body["invalid_users"]] == [1, 2]
    assert body["invalid_users"][0]["email"] == "bad@portal.edu"
    assert db.query(User).count() == 1


def test_bulk_create_rejects_non_list(client, admin):
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": {"email": "x"}})
    assert resp.status_code == 400
    assert resp.json()["received"] == "dict"


def test_bulk_create_from_uploaded_file(client, db, admin):
    content = json.dumps([record("file@portal.edu", "6001")]).encode("utf-8-sig")
    resp = client.post(
        "/api/users/bulk",
        headers=auth_headers(admin),
        files={"file": ("users.json", content, "application/json")},
    )
    assert resp.status_code == 201
    assert resp.json()["users"][0]["email"] == "file@portal.edu"


def test_bulk_create_bad_file(client, admin):
    resp = client.post(
        "/api/users/bulk",
        headers=auth_headers(admin),
        files={"file": ("users.json", b"[{not json", "application/json")},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Invalid JSON format"
    assert body["preview"] == "[{not json"


def test_bulk_create_requires_admin(client, faculty):
    resp = client.post("/api/users/bulk", headers=auth_headers(faculty), json={"users": []})
    assert resp.status_code == 403


def test_bulk_delete(client, db, admin):
    ids = [make_user(db).id for _ in range(3)]
    resp = client.request("DELETE", "/api/users/bulk", headers=auth_headers(admin), json={"user_ids": ids[:2]})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Successfully deleted 2 users"
    assert [u.id for u in db.query(User).filter(User.role == UserRole.STUDENT)] == [ids[2]]


def test_bulk_delete_nothing_found(client, admin):
    resp = client.request("DELETE", "/api/users/bulk", headers=auth_headers(admin), json={"user_ids": [404]})
    assert resp.status_code == 404
    assert resp.json()["message"] == "No users found to delete"


def test_list_users_with_role_filter(client, admin, faculty, student):
    resp = client.get("/api/users", headers=auth_headers(admin))
    assert len(resp.json()) == 3
    resp = client.get("/api/users", params={"role": "faculty"}, headers=auth_headers(admin))
    assert [u["id"] for u in resp.json()] == [faculty.id]


def test_get_user_self_or_admin(client, admin, student, faculty):
    assert client.get(f"/api/users/{student.id}", headers=auth_headers(student)).status_code == 200
    assert client.get(f"/api/users/{student.id}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"/api/users/{student.id}", headers=auth_headers(faculty)).status_code == 403
    assert client.get("/api/users/999", headers=auth_headers(admin)).status_code == 404


def test_admin_creates_faculty(client, admin):
    resp = client.post("/api/users", headers=auth_headers(admin), json={
        "name": "New Faculty",
        "email": "newfac@portal.edu",
        "password": "secret123",
        "role": "faculty",
        "faculty_id": "FAC0777",
    })
    assert resp.status_code == 201
    assert resp.json()["faculty_id"] == "FAC0777"


def test_update_user(client, db, admin, student):
    resp = client.patch(
        f"/api/users/{student.id}", headers=auth_headers(admin), json={"name": "Renamed Student", "semester": 4}
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Renamed Student"
    assert resp.json()["semester"] == 4


def test_update_user_email_conflict(client, admin, student, faculty):
    resp = client.patch(f"/api/users/{student.id}", headers=auth_headers(admin), json={"email": faculty.email})
    assert resp.status_code == 409


def test_update_user_password_is_hashed(client, db, admin, student):
    resp = client.patch(f"/api/users/{student.id}", headers=auth_headers(admin), json={"password": "changed99"})
    assert resp.status_code == 200
    login = client.post("/api/auth/login", json={"email": student.email, "password": "changed99"})
    assert login.status_code == 200
    assert "changed99" not in db.get(User, student.id).password_hash


def test_delete_user(client, db, admin, student):
    resp = client.delete(f"/api/users/{student.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert db.get(User, student.id) is None


def test_delete_faculty_with_subjects_rejected(client, admin, faculty, subject):
    resp = client.delete(f"/api/users/{faculty.id}", headers=auth_headers(admin))
    assert resp.status_code == 400


def test_bulk_emails_compare_exactly(client, db, admin):
    users = [record("Ann@portal.edu", "5001"), record("ann@portal.edu", "5002")]
    resp = client.post("/api/users/bulk", headers=auth_headers(admin), json={"users": users})
    assert resp.status_code == 201
    assert db.query(User).filter(User.role == UserRole.STUDENT).count() == 2
