import pytest


def test_announcements(client, db, headers, school_class):
    for n in range(12):
        response = client.post(
            "/announcements/",
            json={"class_id": school_class["id"], "title": f"Notice {n}", "content": "Bring goggles"},
            headers=headers["teacher"],
        )
        assert response.status_code == 200

    class_feed = client.get(f"/announcements/class/{school_class['id']}", headers=headers["student"]).json()
    assert len(class_feed) == 12
    assert class_feed[0]["title"] == "Notice 11"

    mine = client.get("/announcements/my", headers=headers["student"]).json()
    assert len(mine) == 10
    assert mine[0]["class_name"] == "Biology 101"

    assert client.get("/announcements/my", headers=headers["other_student"]).json() == []


def test_only_owner_posts_announcements(client, headers, school_class):
    body = {"class_id": school_class["id"], "title": "Hi", "content": "Hello"}
    assert client.post("/announcements/", json=body, headers=headers["student"]).status_code == 403
    assert client.post("/announcements/", json=body, headers=headers["other_teacher"]).status_code == 403


def test_timetable_grouped_by_day(client, headers, school_class):
    slots = [
        {"day_of_week": 3, "start_time": "10:00", "end_time": "11:00", "subject": "Lab"},
        {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00", "subject": "Lecture"},
        {"day_of_week": 1, "start_time": "08:00", "end_time": "09:00", "subject": "Tutorial"},
    ]
    for slot in slots:
        response = client.post("/timetable/", json={"class_id": school_class["id"], **slot}, headers=headers["teacher"])
        assert response.status_code == 200

    week = client.get("/timetable/my", headers=headers["student"]).json()
    assert [d["day"] for d in week] == ["Monday", "Wednesday"]
    assert [e["subject"] for e in week[0]["entries"]] == ["Tutorial", "Lecture"]
    assert week[0]["entries"][0]["class_name"] == "Biology 101"


@pytest.mark.parametrize("slot", [
    {"day_of_week": 7, "start_time": "09:00", "end_time": "10:00", "subject": "Lab"},
    {"day_of_week": 2, "start_time": "10:00", "end_time": "09:00", "subject": "Lab"},
    {"day_of_week": 2, "start_time": "10:00", "end_time": "10:00", "subject": "Lab"},
])
def test_timetable_validation(client, headers, school_class, slot):
    response = client.post("/timetable/", json={"class_id": school_class["id"], **slot}, headers=headers["teacher"])
    assert response.status_code == 422


def test_timetable_delete_owner_only(client, db, headers, school_class):
    entry = db.seed("timetable", class_id=school_class["id"], day_of_week=2, start_time="09:00:00", end_time="10:00:00", subject="Lab")
    url = f"/timetable/{entry['id']}"

    assert client.delete(url, headers=headers["student"]).status_code == 403
    assert client.delete(url, headers=headers["teacher"]).status_code == 200
    assert db.rows("timetable") == []


def upload(client, headers, class_id, title="Week 1 slides", filename="slides.pdf", category="Lecture"):
    return client.post(
        "/resources/",
        data={"class_id": class_id, "title": title, "category": category},
        files={"file": (filename, b"slide bytes", "application/pdf")},
        headers=headers,
    )


def test_resource_upload(client, db, headers, users, school_class):
    response = upload(client, headers["teacher"], school_class["id"])
    assert response.status_code == 200
    body = response.json()

    assert body["file_name"] == "slides.pdf"
    assert body["file_size"] == len(b"slide bytes")
    assert body["file_url"].startswith(f"{users['teacher']['id']}/")
    assert body["file_url"] in db.storage.buckets["class-resources"]

    note = db.rows("notifications")[0]
    assert note["user_id"] == users["student"]["id"]
    assert note["type"] == "resource"


def test_resource_upload_owner_only(client, headers, school_class):
    assert upload(client, headers["other_teacher"], school_class["id"]).status_code == 403
    assert upload(client, headers["student"], school_class["id"]).status_code == 403


def test_resource_filters(client, headers, school_class):
    upload(client, headers["teacher"], school_class["id"], title="Week 1 slides", filename="intro.pdf", category="Lecture")
    upload(client, headers["teacher"], school_class["id"], title="Quiz answers", filename="quiz.docx", category="Homework")

    everything = client.get("/resources/", headers=headers["student"]).json()
    assert [r["title"] for r in everything] == ["Quiz answers", "Week 1 slides"]
    assert everything[0]["class_name"] == "Biology 101"

    homework = client.get("/resources/", params={"category": "Homework"}, headers=headers["student"]).json()
    assert [r["title"] for r in homework] == ["Quiz answers"]

    by_file = client.get("/resources/", params={"search": "INTRO"}, headers=headers["student"]).json()
    assert [r["title"] for r in by_file] == ["Week 1 slides"]

    by_class = client.get("/resources/", params={"search": "biology"}, headers=headers["teacher"]).json()
    assert len(by_class) == 2

    assert client.get("/resources/", headers=headers["other_student"]).json() == []


def test_resource_download_and_delete(client, db, headers, school_class):
    resource = upload(client, headers["teacher"], school_class["id"]).json()

    link = client.get(f"/resources/{resource['id']}/download", headers=headers["student"])
    assert link.status_code == 200
    assert link.json()["expires_in"] == 3600

    assert client.get(f"/resources/{resource['id']}/download", headers=headers["other_student"]).status_code == 403

    assert client.delete(f"/resources/{resource['id']}", headers=headers["student"]).status_code == 403
    assert client.delete(f"/resources/{resource['id']}", headers=headers["teacher"]).status_code == 200
    assert db.rows("resources") == []
    assert db.storage.buckets["class-resources"] == {}
