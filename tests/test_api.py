# tests/test_api.py

import uuid

from sqlalchemy.exc import OperationalError

from eduledger.core.database import get_db
from eduledger.main import app


def attendance_payload(roster, **overrides):
    payload = {
        "studentId": str(roster.student_ids[0]),
        "classId": str(roster.class_id),
        "date": "2025-01-10",
        "status": "present",
        "markedBy": "t-100",
    }
    payload.update(overrides)
    return payload


async def test_health(client):
    response = await client.get("/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_mark_attendance_then_conflict(client, roster):
    response = await client.post("/api/v1/attendance", json=attendance_payload(roster))

    assert response.status_code == 201
    body = response.json()
    assert body["date"] == "2025-01-10"
    assert body["studentId"] == str(roster.student_ids[0])

    response = await client.post("/api/v1/attendance", json=attendance_payload(roster))
    assert response.status_code == 409
    assert response.json()["type"] == "ConflictError"


async def test_mark_attendance_unknown_class(client, roster):
    response = await client.post("/api/v1/attendance", json=attendance_payload(roster, classId=str(uuid.uuid4())))

    assert response.status_code == 404
    assert response.json()["type"] == "ClassNotFound"


async def test_validation_errors_are_400(client, roster):
    response = await client.post("/api/v1/attendance", json=attendance_payload(roster, status="excused"))
    assert response.status_code == 400

    response = await client.post("/api/v1/attendance", json=attendance_payload(roster, nickname="x"))
    assert response.status_code == 400


async def test_missing_actor_headers_rejected(client, roster):
    response = await client.get(
        "/api/v1/attendance", headers={"X-Actor-Id": "", "X-Actor-Type": "janitor"}
    )

    assert response.status_code == 400


async def test_bulk_attendance_and_query(client, roster):
    payload = {
        "classId": str(roster.class_id),
        "date": "2025-01-10",
        "markedBy": "t-100",
        "records": [
            {"studentId": str(roster.student_ids[0]), "status": "present"},
            {"studentId": str(roster.student_ids[1]), "status": "absent", "remarks": "Sick"},
            {"studentId": "not-a-uuid", "status": "present"},
        ],
    }

    response = await client.post("/api/v1/attendance/bulk", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert (body["created"], body["updated"], body["skipped"]) == (2, 0, 1)
    assert body["errors"][0]["index"] == 2
    assert body["errors"][0]["studentId"] == "not-a-uuid"

    response = await client.get(
        "/api/v1/attendance", params={"studentId": str(roster.student_ids[1])}
    )
    body = response.json()
    assert body["total"] == 1
    assert body["attendance"][0]["className"] == "Grade 10-A"
    assert body["attendance"][0]["remarks"] == "Sick"
    assert body["statistics"]["absentDays"] == 1
    assert body["statistics"]["attendancePercentage"] == 0


async def test_bulk_skips_rows_that_are_not_objects(client, roster):
    response = await client.post("/api/v1/attendance/bulk", json={
        "classId": str(roster.class_id),
        "date": "2025-01-10",
        "markedBy": "t-100",
        "records": ["junk", {"studentId": str(roster.student_ids[0]), "status": "present"}],
    })

    assert response.status_code == 201
    body = response.json()
    assert (body["created"], body["skipped"]) == (1, 1)
    assert body["errors"][0]["index"] == 0
    assert body["errors"][0]["studentId"] is None

    response = await client.post("/api/v1/grades/bulk", json={
        "classId": str(roster.class_id),
        "assessmentType": "quiz",
        "title": "Quiz 1",
        "maxMarks": 50,
        "gradedBy": "t-100",
        "grades": [None, 7, {"studentId": str(roster.student_ids[0]), "obtainedMarks": 45}],
    })

    assert response.status_code == 201
    body = response.json()
    assert len(body["created"]) == 1
    assert body["skipped"] == 2


async def test_attendance_search_by_student_and_teacher(client, roster):
    await client.post("/api/v1/attendance/bulk", json={
        "classId": str(roster.class_id),
        "date": "2025-01-10",
        "markedBy": "t-100",
        "records": [{"studentId": str(s), "status": "present"} for s in roster.student_ids],
    })

    response = await client.get("/api/v1/attendance", params={"student": "student 3", "teacherId": "t-100"})

    body = response.json()
    assert body["total"] == 1
    assert body["attendance"][0]["studentName"] == "Student 3"
    assert body["attendance"][0]["regNo"] == "REG-003"

    response = await client.get("/api/v1/attendance", params={"teacherId": "t-999"})
    assert response.json()["total"] == 0


async def test_attendance_statistics_match_the_date_filter(client, roster):
    await client.post("/api/v1/attendance", json=attendance_payload(roster))
    await client.post("/api/v1/attendance", json=attendance_payload(roster, date="2025-01-11", status="absent"))

    response = await client.get(
        "/api/v1/attendance", params={"studentId": str(roster.student_ids[0]), "date": "2025-01-11"}
    )

    body = response.json()
    assert body["total"] == 1
    assert body["statistics"]["totalDays"] == 1
    assert body["statistics"]["absentDays"] == 1


async def test_update_and_delete_attendance(client, roster):
    created = (await client.post("/api/v1/attendance", json=attendance_payload(roster))).json()

    response = await client.put(f"/api/v1/attendance/{created['id']}", json={"status": "late"})
    assert response.status_code == 200
    assert response.json()["status"] == "late"
    assert response.json()["markedBy"] == "t-100"

    response = await client.delete(f"/api/v1/attendance/{created['id']}")
    assert response.status_code == 200
    response = await client.delete(f"/api/v1/attendance/{created['id']}")
    assert response.status_code == 404


async def test_student_attendance_statistics(client, roster):
    await client.post("/api/v1/attendance", json=attendance_payload(roster))

    response = await client.get(f"/api/v1/attendance/student/{roster.student_ids[0]}/statistics")

    assert response.status_code == 200
    body = response.json()
    assert body["totalClasses"] == 1
    assert body["statistics"][0]["attendancePercentage"] == 100.0


async def test_grade_lifecycle(client, roster):
    student_id = str(roster.student_ids[0])
    response = await client.post("/api/v1/grades/bulk", json={
        "classId": str(roster.class_id),
        "assessmentType": "quiz",
        "title": "Quiz 1",
        "maxMarks": 50,
        "gradedBy": "t-100",
        "grades": [{"studentId": student_id, "obtainedMarks": 45}],
    })
    assert response.status_code == 201
    grade = response.json()["created"][0]
    assert grade["percentage"] == 90.0
    assert grade["letterGrade"] == "A+"
    assert grade["assessmentTitle"] == "Quiz 1"

    student_headers = {"X-Actor-Id": student_id, "X-Actor-Type": "student"}
    response = await client.get(f"/api/v1/grades/student/{student_id}", headers=student_headers)
    assert response.json()["total"] == 0

    response = await client.patch(f"/api/v1/grades/{grade['id']}/publish", json={"isPublished": True})
    assert response.status_code == 200
    assert response.json()["isPublished"] is True

    response = await client.get(f"/api/v1/grades/student/{student_id}", headers=student_headers)
    body = response.json()
    assert body["total"] == 1
    assert body["grades"][0]["assessments"]["quiz"][0]["id"] == grade["id"]

    response = await client.get(f"/api/v1/grades/student/{student_id}/summary", headers=student_headers)
    assert response.json()["summary"][0]["averageGrade"] == "A+"

    response = await client.get(f"/api/v1/grades/teacher-class/{roster.class_id}/statistics")
    assert response.json()["totalStudents"] == 1
    assert response.json()["gradeDistribution"] == {"A+": 1}


async def test_grade_conflict_and_immutable_fields(client, roster):
    payload = {
        "studentId": str(roster.student_ids[0]),
        "classId": str(roster.class_id),
        "assessmentType": "final",
        "assessmentId": "final-2025",
        "title": "Final Exam",
        "obtainedMarks": 81,
        "gradedBy": "t-100",
    }
    response = await client.post("/api/v1/grades", json=payload)
    assert response.status_code == 201
    grade_id = response.json()["id"]
    assert response.json()["letterGrade"] == "A"

    assert (await client.post("/api/v1/grades", json=payload)).status_code == 409

    response = await client.put(f"/api/v1/grades/{grade_id}", json={"maxMarks": 200})
    assert response.status_code == 400

    response = await client.put(f"/api/v1/grades/{grade_id}", json={"obtainedMarks": 95})
    assert response.status_code == 200
    assert response.json()["letterGrade"] == "A+"

    response = await client.patch("/api/v1/grades/bulk-publish", json={"gradeIds": [grade_id], "isPublished": True})
    assert response.json() == {"modifiedCount": 1}

    response = await client.get(f"/api/v1/grades/teacher-class/{roster.class_id}")
    assert response.json()["total"] == 1


async def test_roster_endpoints(client, roster):
    response = await client.get(f"/api/v1/classes/{roster.class_id}/roster")
    assert response.status_code == 200
    assert response.json()["studentIds"] == [str(s) for s in roster.student_ids]

    response = await client.post(
        f"/api/v1/classes/{roster.class_id}/roster", json={"studentIds": [str(roster.outsider_id)]}
    )
    assert response.json() == {"enrolled": 1, "skipped": 0, "studentCount": 4}

    response = await client.delete(f"/api/v1/classes/{roster.class_id}/roster/{roster.outsider_id}")
    assert response.json()["studentCount"] == 3

    response = await client.get(f"/api/v1/classes/{uuid.uuid4()}/roster")
    assert response.status_code == 404


async def test_class_students_endpoint(client, roster):
    response = await client.get(f"/api/v1/classes/{roster.class_id}/students")

    assert response.status_code == 200
    body = response.json()
    assert body["studentCount"] == 3
    assert body["students"][0] == {
        "studentId": str(roster.student_ids[0]),
        "name": "Student 1",
        "regNo": "REG-001",
    }

    response = await client.get(f"/api/v1/classes/{uuid.uuid4()}/students")
    assert response.status_code == 404


async def test_notification_endpoints(client, roster):
    response = await client.post("/api/v1/notifications/notify", json={
        "senderId": "t-100",
        "senderType": "teacher",
        "senderName": "Ms. Rivera",
        "type": "quiz",
        "title": "New Quiz",
        "messageTemplate": "{sender_name} created {title}",
        "classId": str(roster.class_id),
    })
    assert response.status_code == 201
    assert response.json()["created"] == 3

    student_headers = {"X-Actor-Id": str(roster.student_ids[0]), "X-Actor-Type": "student"}
    response = await client.get("/api/v1/notifications/count", headers=student_headers)
    assert response.json() == {"unreadCount": 1}

    page = (await client.get("/api/v1/notifications", headers=student_headers)).json()
    notification = page["notifications"][0]
    assert notification["message"] == "Ms. Rivera created New Quiz"

    response = await client.patch(f"/api/v1/notifications/{notification['id']}/read", headers=student_headers)
    assert response.json()["isRead"] is True

    # Other recipients cannot touch it
    other_headers = {"X-Actor-Id": str(roster.student_ids[1]), "X-Actor-Type": "student"}
    response = await client.delete(f"/api/v1/notifications/{notification['id']}", headers=other_headers)
    assert response.status_code == 404

    response = await client.patch("/api/v1/notifications/read-all", headers=other_headers)
    assert response.json()["updatedCount"] == 1

    response = await client.delete("/api/v1/notifications", headers=other_headers)
    assert response.json()["updatedCount"] == 1


async def test_notify_requires_an_audience(client):
    response = await client.post("/api/v1/notifications/notify", json={
        "senderId": "t-100",
        "senderType": "teacher",
        "senderName": "Ms. Rivera",
        "type": "message",
        "title": "Hello",
        "messageTemplate": "Hello",
    })

    assert response.status_code == 400


async def test_storage_outage_is_503(client, roster):
    async def unavailable_db():
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))
        yield

    app.dependency_overrides[get_db] = unavailable_db
    payload = {
        "classId": str(roster.class_id),
        "date": "2025-01-10",
        "markedBy": "t-100",
        "records": [],
    }

    response = await client.post("/api/v1/attendance/bulk", json=payload)

    assert response.status_code == 503
    assert response.json()["detail"] == {"retryable": True}
