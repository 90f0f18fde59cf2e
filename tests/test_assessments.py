def _exam(client, headers, world, name="Unit test 1", exam_date="2025-09-01", total=50):
    response = client.post("/api/assessments/exams", json={
        "subjectId": world.subject_id,
        "teacherId": world.subject_teacher_id,
        "classroomId": world.classroom_id,
        "name": name,
        "totalMarks": total,
        "examDate": exam_date,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_exam_creation_takes_school_from_subject(client, world, login):
    exam = _exam(client, login("sam@sunrise.edu"), world)

    assert exam["schoolId"] == world.school_id
    assert exam["examDate"] == "2025-09-01"


def test_teacher_creates_exams_only_for_themselves(client, world, login):
    response = client.post("/api/assessments/exams", json={
        "subjectId": world.subject_id, "teacherId": world.subject_teacher_id,
        "name": "Quiz", "totalMarks": 10, "examDate": "2025-09-02",
    }, headers=login("tara@sunrise.edu"))
    assert response.status_code == 403


def test_total_marks_must_be_positive(client, world, login):
    response = client.post("/api/assessments/exams", json={
        "subjectId": world.subject_id, "teacherId": world.subject_teacher_id,
        "name": "Quiz", "totalMarks": 0, "examDate": "2025-09-02",
    }, headers=login("admin@classhub.io"))
    assert response.status_code == 400


def test_results_overwrite_per_student(client, world, login):
    teacher = login("sam@sunrise.edu")
    exam = _exam(client, teacher, world)

    client.post("/api/assessments/exam-results", json={
        "examId": exam["id"], "results": [{"studentId": world.student_id, "score": 30}],
    }, headers=teacher)
    response = client.post("/api/assessments/exam-results", json={
        "examId": exam["id"], "results": [{"studentId": world.student_id, "score": 42.5, "grade": "A"}],
    }, headers=teacher)

    assert response.status_code == 200
    latest = client.get(f"/api/assessments/students/{world.student_id}/latest",
                        headers=login("asha@sunrise.edu")).json()
    assert len(latest) == 1
    assert latest[0]["score"] == 42.5
    assert latest[0]["grade"] == "A"
    assert latest[0]["exam"]["name"] == "Unit test 1"


def test_score_above_total_rejected_atomically(client, world, login):
    teacher = login("sam@sunrise.edu")
    exam = _exam(client, teacher, world, total=20)

    response = client.post("/api/assessments/exam-results", json={"examId": exam["id"], "results": [
        {"studentId": world.student_id, "score": 15},
        {"studentId": world.classmate_id, "score": 25},
    ]}, headers=teacher)

    assert response.status_code == 400
    latest = client.get(f"/api/assessments/students/{world.student_id}/latest",
                        headers=login("admin@classhub.io")).json()
    assert latest == []


def test_latest_results_newest_first_with_limit(client, world, login):
    teacher = login("sam@sunrise.edu")
    for name, exam_date in (("First", "2025-09-01"), ("Third", "2025-11-01"), ("Second", "2025-10-01")):
        exam = _exam(client, teacher, world, name=name, exam_date=exam_date)
        client.post("/api/assessments/exam-results", json={
            "examId": exam["id"], "results": [{"studentId": world.student_id, "score": 10}],
        }, headers=teacher)

    latest = client.get(f"/api/assessments/students/{world.student_id}/latest?limit=2",
                        headers=login("tara@sunrise.edu")).json()

    assert [r["exam"]["name"] for r in latest] == ["Third", "Second"]
    assert client.get(f"/api/assessments/students/{world.student_id}/latest",
                      headers=login("ben@sunrise.edu")).status_code == 403
