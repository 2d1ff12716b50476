def _timetable(client, name="Term 1"):
    response = client.post("/api/timetables", json={"name": name})
    assert response.status_code == 201
    return response.json()


def _teacher(client, code, **extra):
    response = client.post("/api/teachers/", json={"employee_code": code, "full_name": f"Teacher {code}", **extra})
    assert response.status_code == 201
    return response.json()


def test_slot_times_are_validated_at_the_boundary(client):
    timetable = _timetable(client)
    url = f"/api/timetables/{timetable['id']}/slots"

    early = client.post(url, json={"day": "Monday", "start_time": "08:00", "end_time": "09:30"})
    assert early.status_code == 422
    sunday = client.post(url, json={"day": "Sunday", "start_time": "09:00", "end_time": "10:00"})
    assert sunday.status_code == 422
    inverted = client.post(url, json={"day": "Monday", "start_time": "11:00", "end_time": "10:00"})
    assert inverted.status_code == 422

    ok = client.post(url, json={"day": "mon", "start_time": 540, "end_time": "10:00", "subject_code": None})
    assert ok.status_code == 201
    assert ok.json()["day"] == "Monday"
    assert ok.json()["start_time"] == 540
    assert ok.json()["end_time"] == 600


def test_slot_references_must_exist(client):
    timetable = _timetable(client)
    response = client.post(
        f"/api/timetables/{timetable['id']}/slots",
        json={"day": "Monday", "start_time": "09:00", "end_time": "10:00", "teacher_id": "ghost"},
    )
    assert response.status_code == 404
    missing_timetable = client.post(
        "/api/timetables/ghost/slots",
        json={"day": "Monday", "start_time": "09:00", "end_time": "10:00"},
    )
    assert missing_timetable.status_code == 404


def test_update_cancel_and_delete_slot(client):
    timetable = _timetable(client)
    teacher = _teacher(client, "E001")
    other = _teacher(client, "E002")
    slot = client.post(
        f"/api/timetables/{timetable['id']}/slots",
        json={"day": "Monday", "start_time": "09:00", "end_time": "10:00", "teacher_id": teacher["id"]},
    ).json()

    moved = client.put(f"/api/slots/{slot['id']}", json={"end_time": "11:00", "teacher_id": other["id"]})
    assert moved.status_code == 200
    assert moved.json()["end_time"] == 660
    assert moved.json()["teacher_id"] == other["id"]

    out_of_hours = client.put(f"/api/slots/{slot['id']}", json={"end_time": "18:00"})
    assert out_of_hours.status_code == 422
    assert "only 09:00-17:00 allowed" in out_of_hours.json()["message"]

    cancelled = client.post(f"/api/slots/{slot['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert client.post(f"/api/slots/{slot['id']}/cancel").status_code == 409

    deleted = client.delete(f"/api/slots/{slot['id']}")
    assert deleted.status_code == 204
    assert client.get(f"/api/timetables/{timetable['id']}/slots").json() == []


def test_slot_referenced_by_request_cannot_be_deleted(client):
    timetable = _timetable(client)
    teacher = _teacher(client, "E001")
    slot = client.post(
        f"/api/timetables/{timetable['id']}/slots",
        json={"day": "Monday", "start_time": "09:00", "end_time": "10:00", "teacher_id": teacher["id"]},
    ).json()
    client.post("/api/absences", json={"teacher_id": teacher["id"], "date": "2024-03-04"})

    response = client.delete(f"/api/slots/{slot['id']}")
    assert response.status_code == 409
    assert response.json()["details"]["slot_id"] == slot["id"]


def test_stateless_conflict_check(client):
    response = client.post(
        "/api/conflicts/check",
        json={
            "slots": [
                {"id": "a", "day": "Monday", "start_time": "09:00", "end_time": "10:00", "location": "Building A"},
                {"id": "b", "day": "Monday", "start_time": "10:05", "end_time": "11:00", "location": "Building B"},
            ],
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert [item["conflict_type"] for item in body["conflicts"]] == ["travel_time"]
    assert body["suggested_resolutions"][0]["action_type"] == "extend_gap"
    assert body["summary"]["total_conflicts"] == 1

    relaxed = client.post(
        "/api/conflicts/check",
        json={
            "slots": [
                {"id": "a", "day": "Monday", "start_time": "09:00", "end_time": "10:00", "location": "Building A"},
                {"id": "b", "day": "Monday", "start_time": "10:05", "end_time": "11:00", "location": "Building B"},
            ],
            "min_travel_minutes": 5,
        },
    )
    assert relaxed.json()["conflicts"] == []


def test_stored_conflicts_are_replaced_on_each_run(client):
    timetable = _timetable(client)
    url = f"/api/timetables/{timetable['id']}/slots"
    first = client.post(url, json={"day": "Monday", "start_time": "09:00", "end_time": "10:00", "location": "Room101"}).json()
    client.post(url, json={"day": "Monday", "start_time": "09:30", "end_time": "10:30", "location": "Room101"})

    detected = client.post(f"/api/timetables/{timetable['id']}/conflicts/detect")
    assert detected.status_code == 200
    assert detected.json()["summary"]["by_type"] == {"location_conflict": 1, "time_overlap": 1}

    stored = client.get(f"/api/timetables/{timetable['id']}/conflicts").json()
    assert [item["conflict_type"] for item in stored] == ["time_overlap", "location_conflict"]

    client.put(f"/api/slots/{first['id']}", json={"day": "Tuesday"})
    client.post(f"/api/timetables/{timetable['id']}/conflicts/detect")
    assert client.get(f"/api/timetables/{timetable['id']}/conflicts").json() == []

    admin_feed = client.get("/api/notifications", params={"audience": "admin"}).json()
    assert [item["notification_type"] for item in admin_feed] == ["conflict_detected"]


def test_teacher_crud(client):
    created = _teacher(client, "E001", subjects=["math", " Math ", "art"], email="asha@example.com")
    assert created["subjects"] == ["MATH", "ART"]

    duplicate = client.post("/api/teachers/", json={"employee_code": "E001", "full_name": "Someone"})
    assert duplicate.status_code == 409

    updated = client.put(f"/api/teachers/{created['id']}", json={"status": "on_leave", "max_weekly_minutes": 900})
    assert updated.status_code == 200
    assert updated.json()["status"] == "on_leave"
    assert updated.json()["max_weekly_minutes"] == 900

    on_leave = client.get("/api/teachers/", params={"status": "on_leave"}).json()
    assert [item["employee_code"] for item in on_leave] == ["E001"]
    assert client.get("/api/teachers/", params={"subject": "art"}).json()[0]["id"] == created["id"]
    assert client.get("/api/teachers/missing").status_code == 404

    bad_bounds = client.put(f"/api/teachers/{created['id']}", json={"min_weekly_minutes": 1000})
    assert bad_bounds.status_code == 422


def test_notifications_can_be_marked_read(client):
    timetable = _timetable(client)
    url = f"/api/timetables/{timetable['id']}/slots"
    client.post(url, json={"day": "Friday", "start_time": "14:00", "end_time": "15:00", "instructor": "Dr. Rao"})
    client.post(url, json={"day": "Friday", "start_time": "14:30", "end_time": "15:30", "instructor": "Dr. Rao"})
    client.post(f"/api/timetables/{timetable['id']}/conflicts/detect")

    unread = client.get("/api/notifications", params={"unread_only": True}).json()
    assert len(unread) == 1
    assert unread[0]["details"]["by_severity"] == {"critical": 1, "medium": 1}

    marked = client.post(f"/api/notifications/{unread[0]['id']}/read")
    assert marked.status_code == 200
    assert marked.json()["is_read"] is True
    assert client.get("/api/notifications", params={"unread_only": True}).json() == []
    assert client.post("/api/notifications/missing/read").status_code == 404
