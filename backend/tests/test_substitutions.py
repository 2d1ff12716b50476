MONDAY = "2024-03-04"
SUNDAY = "2024-03-10"


def create_teacher(client, code, subjects=(), **extra):
    payload = {"employee_code": code, "full_name": f"Teacher {code}", "subjects": list(subjects), **extra}
    response = client.post("/api/teachers/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def create_slot(client, timetable_id, day, start, end, **extra):
    payload = {"day": day, "start_time": start, "end_time": end, **extra}
    response = client.post(f"/api/timetables/{timetable_id}/slots", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def seed_school(client):
    assert client.post("/api/subjects", json={"code": "math", "name": "Mathematics", "weight": 5}).status_code == 201
    assert client.post("/api/subjects", json={"code": "ART", "name": "Art", "weight": 1}).status_code == 201

    absent = create_teacher(client, "E000", ["MATH"])
    math_sub = create_teacher(client, "E001", ["MATH"])
    hod = create_teacher(client, "E002", ["ART"])

    classroom = client.post("/api/classrooms", json={"name": "10A", "grade": "10", "hod_id": hod["id"]})
    assert classroom.status_code == 201
    classroom = classroom.json()
    progress = client.put(f"/api/classrooms/{classroom['id']}/progress/MATH", json={"progress_percent": 40})
    assert progress.status_code == 200

    timetable = client.post("/api/timetables", json={"name": "Term 1"}).json()
    first = create_slot(
        client,
        timetable["id"],
        "Monday",
        "09:00",
        "10:00",
        subject_code="MATH",
        classroom_id=classroom["id"],
        teacher_id=absent["id"],
        location="Room101",
    )
    second = create_slot(
        client,
        timetable["id"],
        "Monday",
        "11:00",
        "12:00",
        subject_code="MATH",
        classroom_id=classroom["id"],
        teacher_id=absent["id"],
        location="Room101",
    )
    other_day = create_slot(client, timetable["id"], "Tuesday", "09:00", "10:00", teacher_id=absent["id"])
    return {
        "absent": absent,
        "math_sub": math_sub,
        "hod": hod,
        "classroom": classroom,
        "timetable": timetable,
        "slots": [first, second, other_day],
    }


def test_candidates_for_slot(client):
    data = seed_school(client)
    slot_id = data["slots"][0]["id"]

    response = client.get(f"/api/slots/{slot_id}/candidates", params={"date": MONDAY})
    assert response.status_code == 200
    candidates = response.json()
    assert [item["employee_code"] for item in candidates] == ["E001", "E002"]
    assert candidates[0]["match_score"] == 1.0
    assert candidates[1]["match_score"] == 0.5

    limited = client.get(f"/api/slots/{slot_id}/candidates", params={"date": MONDAY, "limit": 1})
    assert len(limited.json()) == 1

    wrong_day = client.get(f"/api/slots/{slot_id}/candidates", params={"date": "2024-03-05"})
    assert wrong_day.status_code == 409


def test_report_absence_creates_suggested_requests(client):
    data = seed_school(client)

    response = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY, "reason": "Sick"},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["date"] == MONDAY
    requests = body["requests"]
    assert [item["time_slot_id"] for item in requests] == [data["slots"][0]["id"], data["slots"][1]["id"]]
    for item in requests:
        assert item["status"] == "suggested"
        assert item["suggested_teacher_id"] == data["math_sub"]["id"]
        assert item["priority"] == "critical"
        assert item["suggestion_payload"]["subject_match"] is True
        assert item["suggestion_payload"]["alternatives"][0]["employee_code"] == "E002"

    slots = client.get(f"/api/timetables/{data['timetable']['id']}/slots").json()
    status_by_id = {item["id"]: item["status"] for item in slots}
    assert status_by_id[data["slots"][0]["id"]] == "cancelled"
    assert status_by_id[data["slots"][1]["id"]] == "cancelled"
    assert status_by_id[data["slots"][2]["id"]] == "scheduled"

    availability = client.get(f"/api/teachers/{data['absent']['id']}/availability").json()
    assert len(availability) == 1
    assert availability[0]["type"] == "unavailable"
    assert availability[0]["start_time"] is None

    admin_feed = client.get("/api/notifications", params={"audience": "admin"}).json()
    assert any(item["notification_type"] == "absence_reported" for item in admin_feed)
    hod_feed = client.get("/api/notifications", params={"recipient_id": data["hod"]["id"]}).json()
    assert len(hod_feed) == 1
    assert "09:00-10:00" in hod_feed[0]["message"]
    sub_feed = client.get("/api/notifications", params={"recipient_id": data["math_sub"]["id"]}).json()
    assert [item["notification_type"] for item in sub_feed] == ["substitution_suggested"]

    logs = client.get("/api/activity/logs", params={"entity_type": "teacher", "entity_id": data["absent"]["id"]})
    assert "absence.reported" in [item["action"] for item in logs.json()]


def test_partial_absence_only_vacates_overlapping_slots(client):
    data = seed_school(client)

    response = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY, "start_time": "10:30", "end_time": "12:00"},
    )
    assert response.status_code == 201
    assert [item["time_slot_id"] for item in response.json()["requests"]] == [data["slots"][1]["id"]]


def test_absence_on_sunday_records_availability_only(client):
    data = seed_school(client)
    response = client.post("/api/absences", json={"teacher_id": data["absent"]["id"], "date": SUNDAY})
    assert response.status_code == 201
    assert response.json()["requests"] == []


def test_absence_for_unknown_teacher(client):
    response = client.post("/api/absences", json={"teacher_id": "missing", "date": MONDAY})
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Teacher"


def test_absence_window_must_be_complete(client):
    data = seed_school(client)
    response = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY, "start_time": "10:00"},
    )
    assert response.status_code == 422


def test_request_without_candidates_stays_open(client):
    absent = create_teacher(client, "E100", ["MATH"])
    timetable = client.post("/api/timetables", json={"name": "Solo"}).json()
    create_slot(client, timetable["id"], "Monday", "09:00", "10:00", teacher_id=absent["id"])

    response = client.post("/api/absences", json={"teacher_id": absent["id"], "date": MONDAY})
    request = response.json()["requests"][0]
    assert request["status"] == "open"
    assert request["suggested_teacher_id"] is None
    assert request["priority"] == "medium"

    apply = client.post(f"/api/substitutions/{request['id']}/apply", json={})
    assert apply.status_code == 409


def test_apply_reject_and_cancel_lifecycle(client):
    data = seed_school(client)
    requests = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY},
    ).json()["requests"]
    first, second = requests

    applied = client.post(f"/api/substitutions/{first['id']}/apply", json={"applied_by": "office"})
    assert applied.status_code == 200, applied.text
    body = applied.json()
    assert body["status"] == "applied"
    assert body["assigned_teacher_id"] == data["math_sub"]["id"]
    assert body["applied_by"] == "office"
    assert body["applied_at"] is not None

    slots = {item["id"]: item for item in client.get(f"/api/timetables/{data['timetable']['id']}/slots").json()}
    covered = slots[first["time_slot_id"]]
    assert covered["status"] == "substituted"
    assert covered["teacher_id"] == data["math_sub"]["id"]

    workload = {item["employee_code"]: item for item in client.get("/api/workload", params={"week_start": MONDAY}).json()}
    assert workload["E000"]["assigned_minutes"] == 60
    assert workload["E001"]["assigned_minutes"] == 60

    again = client.post(f"/api/substitutions/{first['id']}/apply", json={})
    assert again.status_code == 409
    assert again.json()["details"] == {"current": "applied", "target": "applied"}

    rejected = client.post(f"/api/substitutions/{second['id']}/reject", json={"reason": "Class merged"})
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "Class merged"

    assert client.post(f"/api/substitutions/{second['id']}/cancel", json={}).status_code == 409

    listed = client.get("/api/substitutions", params={"status": "applied"}).json()
    assert [item["id"] for item in listed] == [first["id"]]


def test_cancel_gives_slot_back(client):
    data = seed_school(client)
    request = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY, "start_time": "09:00", "end_time": "10:00"},
    ).json()["requests"][0]

    cancelled = client.post(f"/api/substitutions/{request['id']}/cancel", json={"cancelled_by": "office"})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    slots = {item["id"]: item for item in client.get(f"/api/timetables/{data['timetable']['id']}/slots").json()}
    restored = slots[request["time_slot_id"]]
    assert restored["status"] == "scheduled"
    assert restored["substitution_request_id"] is None
    assert restored["teacher_id"] == data["absent"]["id"]


def test_apply_rejects_teacher_over_cap(client):
    data = seed_school(client)
    small = create_teacher(client, "E009", ["MATH"], max_weekly_minutes=30)
    request = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY},
    ).json()["requests"][0]

    response = client.post(f"/api/substitutions/{request['id']}/apply", json={"teacher_id": small["id"]})
    assert response.status_code == 409
    assert response.json()["message"] == "Would exceed weekly cap (60/30 minutes)"


def test_apply_rejects_busy_teacher(client):
    data = seed_school(client)
    busy = create_teacher(client, "E010", ["MATH"])
    create_slot(client, data["timetable"]["id"], "Monday", "09:30", "10:30", teacher_id=busy["id"])
    request = client.post(
        "/api/absences",
        json={"teacher_id": data["absent"]["id"], "date": MONDAY},
    ).json()["requests"][0]

    response = client.post(f"/api/substitutions/{request['id']}/apply", json={"teacher_id": busy["id"]})
    assert response.status_code == 409
    assert "not available" in response.json()["message"]


def test_unknown_request(client):
    response = client.post("/api/substitutions/missing/reject", json={})
    assert response.status_code == 404


def test_substitution_updates_workload_for_every_tracked_week(client):
    absent = create_teacher(client, "E000")
    loaded = create_teacher(client, "E001")
    create_teacher(client, "E002")
    timetable = client.post("/api/timetables", json={"name": "Term 1"}).json()
    covered = create_slot(client, timetable["id"], "Monday", "09:00", "11:00", teacher_id=absent["id"])
    later = create_slot(client, timetable["id"], "Monday", "13:00", "15:00", teacher_id=absent["id"])
    for day in ("Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"):
        create_slot(client, timetable["id"], day, "09:00", "12:00", teacher_id=loaded["id"])

    next_week = client.get("/api/workload", params={"week_start": "2024-03-11"}).json()
    assert {item["employee_code"]: item["assigned_minutes"] for item in next_week}["E001"] == 900

    report = client.post(
        "/api/absences",
        json={"teacher_id": absent["id"], "date": MONDAY, "start_time": "09:00", "end_time": "11:00"},
    ).json()
    assert [item["time_slot_id"] for item in report["requests"]] == [covered["id"]]
    applied = client.post(
        f"/api/substitutions/{report['requests'][0]['id']}/apply",
        json={"teacher_id": loaded["id"]},
    )
    assert applied.status_code == 200, applied.text

    for week_start in (MONDAY, "2024-03-11"):
        rows = client.get("/api/workload", params={"week_start": week_start}).json()
        minutes = {item["employee_code"]: item["assigned_minutes"] for item in rows}
        assert minutes["E001"] == 1020
        assert minutes["E000"] == 120

    # 1020 + 120 would exceed the 1080 cap in the following week too.
    candidates = client.get(f"/api/slots/{later['id']}/candidates", params={"date": "2024-03-11"}).json()
    assert [item["employee_code"] for item in candidates] == ["E002"]
