from conftest import auth_headers, make_paper, make_user

from exam_portal.models import Department, ExamPaper, Specialization, Subject, UserRole


def subject_payload(faculty, **overrides):
    payload = {
        "name": "Operating Systems",
        "faculty_id": faculty.id,
        "school": "SOET",
        "department": "CSE",
        "specialization": "AIML",
        "semester": 5,
    }
    payload.update(overrides)
    return payload


def test_faculty_creates_own_subject(client, faculty):
    resp = client.post("/api/subjects", headers=auth_headers(faculty), json=subject_payload(faculty))
    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Operating Systems"
    assert body["faculty_name"] == faculty.name


def test_faculty_cannot_create_for_colleague(client, db, faculty):
    colleague = make_user(db, UserRole.FACULTY)
    resp = client.post("/api/subjects", headers=auth_headers(faculty), json=subject_payload(colleague))
    assert resp.status_code == 403


def test_admin_creates_subject_for_faculty(client, admin, faculty):
    resp = client.post("/api/subjects", headers=auth_headers(admin), json=subject_payload(faculty))
    assert resp.status_code == 201


def test_subject_requires_faculty_reference(client, admin, student):
    resp = client.post("/api/subjects", headers=auth_headers(admin), json=subject_payload(student))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid faculty ID"


def test_subject_semester_range(client, admin, faculty):
    payload = subject_payload(faculty, school="SoPHAS", semester=7)
    resp = client.post("/api/subjects", headers=auth_headers(admin), json=payload)
    assert resp.status_code == 400


def test_subject_rejects_unknown_department(client, admin, faculty):
    resp = client.post("/api/subjects", headers=auth_headers(admin), json=subject_payload(faculty, department="LAW"))
    assert resp.status_code == 400


def test_student_cannot_create_subject(client, student, faculty):
    resp = client.post("/api/subjects", headers=auth_headers(student), json=subject_payload(faculty))
    assert resp.status_code == 403


def test_list_and_get_subjects(client, student, subject):
    resp = client.get("/api/subjects", headers=auth_headers(student))
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == [subject.id]

    resp = client.get(f"/api/subjects/{subject.id}", headers=auth_headers(student))
    assert resp.json()["name"] == subject.name


def test_get_missing_subject(client, student):
    resp = client.get("/api/subjects/999", headers=auth_headers(student))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Subject not found"}


def test_other_faculty_cannot_update(client, db, subject):
    colleague = make_user(db, UserRole.FACULTY)
    resp = client.patch(f"/api/subjects/{subject.id}", headers=auth_headers(colleague), json={"name": "Hijacked"})
    assert resp.status_code == 403


def test_update_rechecks_semester_range(client, faculty, subject):
    resp = client.patch(f"/api/subjects/{subject.id}", headers=auth_headers(faculty), json={"school": "SoM"})
    assert resp.status_code == 200
    resp = client.patch(f"/api/subjects/{subject.id}", headers=auth_headers(faculty), json={"semester": 8})
    assert resp.status_code == 400


def test_update_resyncs_paper_mirror(client, db, faculty, subject, paper):
    resp = client.patch(
        f"/api/subjects/{subject.id}",
        headers=auth_headers(faculty),
        json={"department": "ECE", "specialization": "No Specialization"},
    )
    assert resp.status_code == 200

    stored = db.get(ExamPaper, paper.id)
    assert stored.department == Department.ECE
    assert stored.specialization == Specialization.NONE


def test_delete_subject_with_papers_rejected(client, faculty, subject, paper):
    resp = client.delete(f"/api/subjects/{subject.id}", headers=auth_headers(faculty))
    assert resp.status_code == 400


def test_delete_subject(client, db, faculty, subject):
    resp = client.delete(f"/api/subjects/{subject.id}", headers=auth_headers(faculty))
    assert resp.status_code == 200
    assert db.get(Subject, subject.id) is None


def test_delete_subject_leaves_other_subject_papers(client, db, admin, faculty, subject):
    other = Subject(
        name="Networks", faculty_id=faculty.id, school=subject.school,
        department=subject.department, specialization=subject.specialization, semester=3,
    )
    db.add(other)
    db.commit()
    make_paper(db, other, faculty)
    resp = client.delete(f"/api/subjects/{subject.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert db.query(ExamPaper).count() == 1
