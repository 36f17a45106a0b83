from fastapi.testclient import TestClient

DAY = "2025-03-03"


def test_requires_session(app, seeded):
    response = TestClient(app).get("/api/groups")
    assert response.status_code == 401
    assert response.json()["code"] == "NOT_AUTHENTICATED"


def test_instructor_sees_only_assigned_groups(instructor_client, owner_client):
    assert [g["id"] for g in instructor_client.get("/api/groups").json()["groups"]] == ["TTI"]
    groups = owner_client.get("/api/groups").json()["groups"]
    assert sorted(g["id"] for g in groups) == ["HIP", "TTI"]
    assert groups[0]["spreadsheetId"].startswith("sheet-")


def test_instructor_is_denied_other_groups(instructor_client):
    response = instructor_client.get("/api/students", params={"groupId": "HIP"})

    assert response.status_code == 403
    assert response.json()["code"] == "GROUP_ACCESS_DENIED"
    assert response.json()["allowedGroups"] == ["TTI"]


def test_unknown_group(owner_client):
    response = owner_client.get("/api/attendance", params={"groupId": "SALSA", "date": DAY})
    assert response.status_code == 404
    assert response.json()["code"] == "GROUP_NOT_FOUND"


def test_students_list(instructor_client):
    students = instructor_client.get("/api/students", params={"groupId": "TTI"}).json()["students"]
    assert [s["id"] for s in students] == ["STU-2", "STU-3", "STU-1"]
    assert students[2]["class"] == "3A"

    everyone = instructor_client.get("/api/students", params={"groupId": "TTI", "showInactive": "true"})
    assert len(everyone.json()["students"]) == 4

    assert instructor_client.get("/api/students").json() == {"students": []}


def test_attendance_requires_group_and_date(instructor_client):
    missing = instructor_client.get("/api/attendance", params={"groupId": "TTI"})
    assert missing.status_code == 400

    bad_date = instructor_client.get("/api/attendance", params={"groupId": "TTI", "date": "03.03.2025"})
    assert bad_date.status_code == 400


def test_save_and_read_attendance(instructor_client):
    assert instructor_client.get("/api/attendance/exists", params={"groupId": "TTI", "date": DAY}).json() == {
        "exists": False
    }

    saved = instructor_client.post("/api/attendance", json={
        "groupId": "TTI",
        "date": DAY,
        "items": [{"student_id": "STU-1", "status": "present"}, {"student_id": "STU-2", "status": "absent"}],
    })
    assert saved.status_code == 200
    body = saved.json()
    assert body["session_id"] == "SESS-2025-03-03-TTI"
    assert body["conflicts"] == []
    assert len(body["updated"]) == 2

    read = instructor_client.get("/api/attendance", params={"groupId": "TTI", "date": DAY}).json()
    statuses = {i["student_id"]: i["status"] for i in read["items"]}
    assert statuses == {"STU-1": "present", "STU-2": "absent", "STU-4": "withdrawn"}
    assert instructor_client.get("/api/attendance/exists", params={"groupId": "TTI", "date": DAY}).json() == {
        "exists": True
    }


def test_invalid_attendance_body(instructor_client):
    response = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": "2025-02-30", "items": [{"student_id": "STU-1", "status": "present"}],
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request body"

    response = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-1", "status": "late"}],
    })
    assert response.status_code == 400


def test_concurrent_editors_get_conflicts(app, seeded, owner_client, instructor_client):
    instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-1", "status": "present"}],
    })

    # both editors load the same version
    seen_a = instructor_client.get("/api/attendance", params={"groupId": "TTI", "date": DAY}).json()
    seen_b = owner_client.get("/api/attendance", params={"groupId": "TTI", "date": DAY}).json()
    stamp_a = next(i for i in seen_a["items"] if i["student_id"] == "STU-1")["updated_at"]
    stamp_b = next(i for i in seen_b["items"] if i["student_id"] == "STU-1")["updated_at"]

    first = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY,
        "items": [{"student_id": "STU-1", "status": "absent", "updated_at": stamp_a}],
    }).json()
    second = owner_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY,
        "items": [{"student_id": "STU-1", "status": "present", "updated_at": stamp_b}],
    }).json()

    assert first["conflicts"] == []
    assert [c["student_id"] for c in second["conflicts"]] == ["STU-1"]
    assert second["conflicts"][0]["status"] == "absent"
    assert second["updated"] == []


def test_note_notifies_admins(app, instructor_client, owner_client):
    response = instructor_client.post("/api/attendance/notes", json={
        "groupId": "TTI", "date": DAY, "student_id": "STU-1", "notes": "forgot shoes",
    })
    assert response.status_code == 200
    assert response.json()["item"]["notes"] == "forgot shoes"

    notifications = owner_client.get("/api/notifications").json()["notifications"]
    assert notifications[0]["type"] == "attendance_note"
    assert "Anna Nowak" in notifications[0]["message"]
    assert notifications[0]["metadata"]["groupId"] == "TTI"


def test_add_student_creates_pending_and_notifies(app, instructor_client, owner_client, sheets):
    response = instructor_client.post("/api/students", json={
        "groupId": "TTI", "firstName": "Iga", "lastName": "Bąk", "phone": "500600700",
    })

    assert response.status_code == 201
    student = response.json()["student"]
    assert student["status"] == "pending"
    assert sheets.sheet("sheet-tti", "Students")[-1][0] == student["id"]

    assert owner_client.get("/api/notifications/unread-count").json() == {"count": 1}
    note = owner_client.get("/api/notifications").json()["notifications"][0]
    assert note["type"] == "student_added"
    assert note["metadata"]["missingFields"] == ["class", "mail"]


def test_sheets_failure_maps_to_502(instructor_client, sheets):
    sheets.fail = True
    response = instructor_client.get("/api/students", params={"groupId": "TTI"})

    assert response.status_code == 502
    assert response.json()["hint"] == "Ensure the sheet is shared with the service account as Editor"


def test_reports_are_limited_to_own_groups(instructor_client, owner_client):
    owner_client.post("/api/attendance", json={
        "groupId": "HIP", "date": DAY, "items": [{"student_id": "STU-10", "status": "present"}],
    })
    owner_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-1", "status": "absent"}],
    })

    mine = instructor_client.get("/api/reports/attendance").json()
    assert [i["group_id"] for i in mine["items"]] == ["TTI"]

    denied = instructor_client.get("/api/reports/attendance", params={"groupIds": "HIP"})
    assert denied.status_code == 403

    everything = owner_client.get("/api/reports/attendance", params={"status": "present"}).json()
    assert [i["student_id"] for i in everything["items"]] == ["STU-10"]
    assert everything["totalStats"]["totalSessions"] == 2
    assert everything["totalStats"]["attendancePercentage"] == 50


def test_report_rejects_bad_filters(owner_client):
    assert owner_client.get("/api/reports/attendance", params={"status": "late"}).status_code == 400
    assert owner_client.get("/api/reports/attendance", params={"dateFrom": "yesterday"}).status_code == 400


def test_csv_export(owner_client):
    owner_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-1", "status": "present"}],
    })

    response = owner_client.get("/api/export/csv", params={"groupIds": "TTI"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"attendance-report-" in response.headers["content-disposition"]
    text = response.content.decode("utf-8")
    assert text.startswith("\ufeff")
    assert '"Anna Nowak","Taniec Towarzyski I","2025-03-03","present",""' in text


def test_html_export(owner_client):
    response = owner_client.get("/api/export/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert ".html\"" in response.headers["content-disposition"]
    assert "<table>" in response.text


def test_health(app, seeded):
    body = TestClient(app).get("/health").json()
    assert body["status"] == "ok"
    assert body["integrations"]["database"] == "connected"
    assert body["integrations"]["smtp"] == "not configured"


def test_second_save_with_stale_timestamp_conflicts(instructor_client):
    first = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-2", "status": "present"}],
    }).json()
    assert first["conflicts"] == []
    stale = first["updated"][0]["updated_at"]

    again = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-2", "status": "absent", "updated_at": stale}],
    }).json()
    assert again["conflicts"] == []

    # the client never picked up the second timestamp
    third = instructor_client.post("/api/attendance", json={
        "groupId": "TTI", "date": DAY, "items": [{"student_id": "STU-2", "status": "present", "updated_at": stale}],
    }).json()
    assert [c["student_id"] for c in third["conflicts"]] == ["STU-2"]
    assert third["conflicts"][0]["status"] == "absent"

    current = instructor_client.get("/api/attendance", params={"groupId": "TTI", "date": DAY}).json()
    assert {i["student_id"]: i["status"] for i in current["items"]}["STU-2"] == "absent"
