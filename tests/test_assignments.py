import pytest

from schoolhub.ai import grader
from schoolhub.core.config import settings


@pytest.fixture
def assignment(db, school_class):
    return db.seed("assignments", class_id=school_class["id"], title="Cell structure", total_points=50)


def submit(client, headers, assignment, content="Mitochondria are the powerhouse"):
    return client.post("/submissions/", json={"assignment_id": assignment["id"], "content": content}, headers=headers)


def test_create_assignment_notifies_students(client, db, headers, users, school_class):
    response = client.post(
        "/assignments/",
        json={"class_id": school_class["id"], "title": "Lab report"},
        headers=headers["teacher"],
    )
    assert response.status_code == 200
    assert response.json()["total_points"] == 100

    notes = db.rows("notifications")
    assert [n["user_id"] for n in notes] == [users["student"]["id"]]
    assert notes[0]["type"] == "assignment"
    assert notes[0]["related_id"] == response.json()["id"]


def test_only_owner_creates_assignments(client, headers, school_class):
    body = {"class_id": school_class["id"], "title": "Lab report"}
    assert client.post("/assignments/", json=body, headers=headers["other_teacher"]).status_code == 403
    assert client.post("/assignments/", json=body, headers=headers["student"]).status_code == 403


def test_student_sees_own_submission_in_list(client, headers, assignment):
    submit(client, headers["student"], assignment)

    listing = client.get(f"/assignments/class/{assignment['class_id']}", headers=headers["student"])
    assert listing.status_code == 200
    assert listing.json()[0]["my_submission"]["content"] == "Mitochondria are the powerhouse"

    outsider = client.get(f"/assignments/class/{assignment['class_id']}", headers=headers["other_student"])
    assert outsider.status_code == 403


def test_submission_survives_ai_failure(client, db, headers, assignment):
    response = submit(client, headers["student"], assignment)
    assert response.status_code == 200
    body = response.json()

    assert body["ai_grading"] == "failed"
    assert body["ai_error"] == "AI_GATEWAY_API_KEY is not configured"
    assert body["submission"]["grade"] is None
    assert len(db.rows("assignment_submissions")) == 1


def test_submission_graded_by_ai(client, db, headers, assignment, monkeypatch):
    monkeypatch.setattr(settings, "AI_GATEWAY_API_KEY", "test-key")

    class Reply:
        status_code = 200
        ok = True

        def json(self):
            return {"choices": [{"message": {"content": "Grade: 88. Clear and accurate."}}]}

    monkeypatch.setattr(grader.requests, "post", lambda *a, **kw: Reply())

    body = submit(client, headers["student"], assignment).json()
    assert body["ai_grading"] == "completed"
    assert body["submission"]["grade"] == 88
    assert db.rows("assignment_submissions")[0]["ai_feedback"].startswith("Grade: 88")


def test_second_submission_rejected(client, db, headers, assignment):
    assert submit(client, headers["student"], assignment).status_code == 200

    again = submit(client, headers["student"], assignment, content="second try")
    assert again.status_code == 400
    assert again.json()["detail"] == "You have already submitted this assignment"
    assert len(db.rows("assignment_submissions")) == 1


def test_non_enrolled_student_cannot_submit(client, headers, assignment):
    assert submit(client, headers["other_student"], assignment).status_code == 403


def test_student_cannot_edit_someone_elses_submission(client, db, headers, users, assignment):
    db.seed("class_enrollments", class_id=assignment["class_id"], student_id=users["other_student"]["id"])
    submission = submit(client, headers["student"], assignment).json()["submission"]
    url = f"/submissions/{submission['id']}"

    forbidden = client.put(url, json={"content": "hijacked"}, headers=headers["other_student"])
    assert forbidden.status_code == 403

    allowed = client.put(url, json={"content": "revised"}, headers=headers["student"])
    assert allowed.status_code == 200
    assert allowed.json()["content"] == "revised"


def test_teacher_lists_submissions_with_student_details(client, headers, assignment):
    submit(client, headers["student"], assignment)

    response = client.get(f"/submissions/assignment/{assignment['id']}", headers=headers["teacher"])
    assert response.status_code == 200
    row = response.json()[0]
    assert row["student_name"] == "Sam Student"
    assert row["student_email"] == "sam@school.test"

    assert client.get(f"/submissions/assignment/{assignment['id']}", headers=headers["other_teacher"]).status_code == 403


def test_grading_notifies_student(client, db, headers, users, assignment):
    submission = submit(client, headers["student"], assignment).json()["submission"]

    response = client.post(
        f"/submissions/{submission['id']}/grade",
        json={"grade": 45, "teacher_feedback": "Well argued"},
        headers=headers["teacher"],
    )
    assert response.status_code == 200
    assert response.json()["grade"] == 45
    assert response.json()["graded_by"] == users["teacher"]["id"]
    assert db.rows("assignment_submissions")[0]["graded_at"].endswith("+00:00")

    note = db.rows("notifications")[-1]
    assert note["user_id"] == users["student"]["id"]
    assert note["type"] == "grade"
    assert note["related_id"] == assignment["id"]
    assert note["message"] == 'Your assignment "Cell structure" has been graded. Score: 45/50'


def test_grade_must_fit_total_points(client, headers, assignment):
    submission = submit(client, headers["student"], assignment).json()["submission"]
    url = f"/submissions/{submission['id']}/grade"

    assert client.post(url, json={"grade": 51}, headers=headers["teacher"]).status_code == 400
    assert client.post(url, json={"grade": -1}, headers=headers["teacher"]).status_code == 400
    assert client.post(url, json={"grade": 10}, headers=headers["other_teacher"]).status_code == 403


def test_assignment_file_upload_and_signed_url(client, db, headers, assignment):
    upload = client.post(
        f"/assignments/{assignment['id']}/file",
        files={"file": ("brief.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers["teacher"],
    )
    assert upload.status_code == 200
    path = upload.json()["file_url"]
    assert path.startswith(f"{assignment['class_id']}/") and path.endswith(".pdf")
    assert path in db.storage.buckets["assignment-files"]

    link = client.get(f"/assignments/{assignment['id']}/file", headers=headers["student"])
    assert link.status_code == 200
    assert link.json()["expires_in"] == 3600
    assert path in link.json()["signed_url"]


def test_deleting_assignment_removes_submissions(client, db, headers, assignment):
    submit(client, headers["student"], assignment)
    assert client.delete(f"/assignments/{assignment['id']}", headers=headers["teacher"]).status_code == 200
    assert db.rows("assignment_submissions") == []
