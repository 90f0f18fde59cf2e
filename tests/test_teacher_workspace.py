from datetime import date

from conftest import DEVICE_HEADERS


def test_my_classrooms_merges_homeroom_and_subject_roles(client, world, login, subject_assignment):
    homeroom = client.get("/api/teachers/me/classrooms", headers=login("tara@sunrise.edu")).json()
    subject = client.get("/api/teachers/me/classrooms", headers=login("sam@sunrise.edu")).json()

    assert len(homeroom["classrooms"]) == 1
    entry = homeroom["classrooms"][0]
    assert entry["id"] == world.classroom_id
    assert entry["studentCount"] == 2
    assert entry["roles"] == {"homeroom": True, "subjects": []}
    assert entry["grade"]["level"] == 8

    subjects = subject["classrooms"][0]["roles"]["subjects"]
    assert subject["classrooms"][0]["roles"]["homeroom"] is False
    assert subjects == [{
        "teacherSubjectId": subject_assignment,
        "subjectId": world.subject_id,
        "subjectCode": "MATH8",
        "subjectName": "Mathematics",
    }]


def test_my_classrooms_is_teacher_only(client, world, login):
    assert client.get("/api/teachers/me/classrooms", headers=login("principal@sunrise.edu")).status_code == 403


def test_classroom_students_with_attendance_stats(client, world, login):
    teacher = login("tara@sunrise.edu")
    session = client.post("/api/attendance/sessions", json={
        "schoolId": world.school_id, "classroomId": world.classroom_id, "sessionDate": str(date.today()),
    }, headers=teacher).json()
    client.post(f"/api/attendance/sessions/{session['id']}/records", json={"entries": [
        {"studentId": world.student_id, "status": "present"},
        {"studentId": world.classmate_id, "status": "late"},
    ]}, headers=DEVICE_HEADERS)

    response = client.get(f"/api/teachers/me/classrooms/{world.classroom_id}/students", headers=teacher)

    assert response.status_code == 200
    body = response.json()
    assert body["canEditAttendance"] is True
    assert [s["firstName"] for s in body["students"]] == ["Asha", "Ben"]
    assert body["students"][0]["attendance"]["attendanceRate"] == 1.0
    assert body["students"][1]["attendance"]["late"] == 1


def test_subject_teacher_sees_students_without_edit_rights(client, world, login, subject_assignment):
    response = client.get(f"/api/teachers/me/classrooms/{world.classroom_id}/students",
                          headers=login("sam@sunrise.edu"))

    assert response.status_code == 200
    assert response.json()["canEditAttendance"] is False
    assert response.json()["students"][0]["attendance"]["total"] == 0


def test_unassigned_classroom_forbidden(client, world, login):
    response = client.get(f"/api/teachers/me/classrooms/{world.classroom_id}/students",
                          headers=login("sam@sunrise.edu"))
    assert response.status_code == 403
