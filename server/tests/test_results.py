import pytest
from conftest import auth_headers, make_paper, make_user

from exam_portal.models import Result, Submission, SubmissionStatus, UserRole
from exam_portal.timeutils import utcnow


def publish_result(db, student, paper, score):
    submission = Submission(
        student_id=student.id, exam_paper_id=paper.id, answers=[], score=score,
        start_time=utcnow(), end_time=utcnow(), is_submitted=True, status=SubmissionStatus.PUBLISHED,
    )
    db.add(submission)
    db.flush()
    result = Result(
        student_id=student.id, exam_paper_id=paper.id, submission_id=submission.id,
        score=score, total_marks=paper.total_marks, percentage=score / paper.total_marks * 100,
    )
    db.add(result)
    db.commit()
    return result


@pytest.fixture
def results(db, student, faculty, subject, paper):
    other_student = make_user(db, UserRole.STUDENT)
    second_paper = make_paper(db, subject, faculty, title="Final")
    return [
        publish_result(db, student, paper, 8),
        publish_result(db, student, second_paper, 4),
        publish_result(db, other_student, paper, 6),
    ]


def test_student_sees_own_results(client, student, results):
    resp = client.get("/api/results", headers=auth_headers(student))
    assert resp.status_code == 200
    body = resp.json()
    assert [r["id"] for r in body] == [results[0].id, results[1].id]
    assert body[0]["student_name"] == student.name
    assert body[0]["exam_title"] == "Midterm"


@pytest.mark.parametrize("who", ["faculty", "admin"])
def test_staff_see_all_results(client, request, results, who):
    user = request.getfixturevalue(who)
    resp = client.get("/api/results", headers=auth_headers(user))
    assert len(resp.json()) == 3


def test_student_cannot_read_others_result(client, student, results):
    resp = client.get(f"/api/results/{results[2].id}", headers=auth_headers(student))
    assert resp.status_code == 403
    resp = client.get(f"/api/results/{results[0].id}", headers=auth_headers(student))
    assert resp.status_code == 200
    assert resp.json()["percentage"] == 80


def test_missing_result(client, admin):
    resp = client.get("/api/results/999", headers=auth_headers(admin))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Result not found"


def test_stats(client, faculty, results):
    resp = client.get("/api/results/stats", headers=auth_headers(faculty))
    assert resp.status_code == 200
    assert resp.json() == {
        "average_score": 6,
        "highest_score": 8,
        "lowest_score": 4,
        "total_students": 3,
    }


def test_stats_empty(client, admin):
    resp = client.get("/api/results/stats", headers=auth_headers(admin))
    assert resp.json() == {
        "average_score": 0,
        "highest_score": 0,
        "lowest_score": 0,
        "total_students": 0,
    }


def test_students_cannot_see_stats(client, student):
    assert client.get("/api/results/stats", headers=auth_headers(student)).status_code == 403
