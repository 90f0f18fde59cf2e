def test_school_creation_is_for_governing_roles(client, world, login):
    created = client.post("/api/core/schools", json={"name": "Hilltop", "district": "East"},
                          headers=login("gov@classhub.io"))
    assert created.status_code == 201
    assert created.json()["name"] == "Hilltop"

    denied = client.post("/api/core/schools", json={"name": "Rogue"}, headers=login("principal@sunrise.edu"))
    assert denied.status_code == 403


def test_school_list_scoped_to_principal(client, world, login):
    everything = client.get("/api/core/schools", headers=login("admin@classhub.io")).json()
    own = client.get("/api/core/schools", headers=login("principal@sunrise.edu")).json()

    assert len(everything) == 2
    assert [s["id"] for s in own] == [world.school_id]


def test_bulk_grades_skip_existing_levels(client, world, login):
    response = client.post(
        "/api/core/grades/bulk",
        json={"schoolId": world.school_id, "startLevel": 7, "endLevel": 9},
        headers=login("principal@sunrise.edu"),
    )

    assert response.status_code == 201
    body = response.json()
    assert [g["level"] for g in body["created"]] == [7, 9]
    assert body["created"][0]["name"] == "Grade 7"
    assert body["skippedLevels"] == [8]


def test_bulk_grades_reject_inverted_range(client, world, login):
    response = client.post(
        "/api/core/grades/bulk",
        json={"schoolId": world.school_id, "startLevel": 9, "endLevel": 3},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 400


def test_principal_cannot_bulk_create_for_other_school(client, world, login):
    response = client.post(
        "/api/core/grades/bulk",
        json={"schoolId": world.other_school_id, "endLevel": 2},
        headers=login("principal@sunrise.edu"),
    )
    assert response.status_code == 403


def test_grades_listed_with_sections(client, world, login):
    grades = client.get("/api/core/grades", headers=login("tara@sunrise.edu")).json()

    assert len(grades) == 1
    assert grades[0]["sections"][0]["label"] == "A"


def test_duplicate_section_label_conflicts(client, world, login):
    response = client.post("/api/core/sections", json={"gradeId": world.grade_id, "label": "A"},
                           headers=login("admin@classhub.io"))
    assert response.status_code == 409


def test_bulk_sections_skip_existing_labels(client, world, login):
    response = client.post(
        "/api/core/sections/bulk",
        json={"gradeId": world.grade_id, "labels": ["A", "B", "C"]},
        headers=login("principal@sunrise.edu"),
    )
    assert response.status_code == 201
    assert [s["label"] for s in response.json()["created"]] == ["B", "C"]
    assert response.json()["skippedLabels"] == ["A"]


def test_classroom_requires_consistent_ownership_chain(client, world, login, db):
    from classhub.models.school import Section

    other_section_id = db.query(Section.id).filter(Section.grade_id != world.grade_id).scalar()
    response = client.post(
        "/api/core/classrooms",
        json={"schoolId": world.school_id, "gradeId": world.grade_id, "sectionId": other_section_id,
              "academicYear": "2026-2027"},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Section does not belong to the specified grade"


def test_duplicate_classroom_conflicts(client, world, login):
    response = client.post(
        "/api/core/classrooms",
        json={"schoolId": world.school_id, "gradeId": world.grade_id, "sectionId": world.section_id,
              "academicYear": "2025-2026"},
        headers=login("principal@sunrise.edu"),
    )
    assert response.status_code == 409


def test_academic_year_format_validated(client, world, login):
    response = client.patch(f"/api/core/classrooms/{world.classroom_id}", json={"academicYear": "2025/26"},
                            headers=login("admin@classhub.io"))
    assert response.status_code == 400


def test_update_requires_a_field(client, world, login):
    response = client.patch(f"/api/core/teachers/{world.teacher_id}", json={},
                            headers=login("admin@classhub.io"))

    assert response.status_code == 400


def test_subject_code_unique_within_school(client, world, login):
    duplicate = client.post(
        "/api/core/subjects",
        json={"schoolId": world.school_id, "code": "MATH8", "name": "Maths again"},
        headers=login("admin@classhub.io"),
    )
    elsewhere = client.post(
        "/api/core/subjects",
        json={"schoolId": world.other_school_id, "code": "MATH8", "name": "Mathematics"},
        headers=login("admin@classhub.io"),
    )

    assert duplicate.status_code == 409
    assert elsewhere.status_code == 201


def test_student_creation_captures_grade_and_section(client, world, login):
    response = client.post(
        "/api/core/students",
        json={"schoolId": world.school_id, "classroomId": world.classroom_id, "code": "STU-003",
              "firstName": "Cara", "lastName": "New", "classTeacherId": world.teacher_id, "gender": "F"},
        headers=login("principal@sunrise.edu"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["gradeLevel"] == 8
    assert body["sectionLabel"] == "A"
    assert body["active"] is True


def test_student_class_teacher_must_share_school(client, world, login):
    response = client.post(
        "/api/core/students",
        json={"schoolId": world.school_id, "classroomId": world.classroom_id, "code": "STU-004",
              "firstName": "Dev", "lastName": "New", "classTeacherId": world.other_teacher_id},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 400


def test_student_classroom_must_exist_and_match_school(client, world, login):
    admin = login("admin@classhub.io")
    payload = {"schoolId": world.school_id, "code": "STU-005", "firstName": "Eli", "lastName": "New"}

    missing = client.post("/api/core/students", json={**payload, "classroomId": 9999}, headers=admin)
    foreign = client.post("/api/core/students", json={**payload, "classroomId": world.other_classroom_id},
                          headers=admin)

    assert missing.status_code == 404
    assert foreign.status_code == 400


def test_teacher_lists_only_homeroom_students(client, world, login):
    homeroom = client.get("/api/core/students", headers=login("tara@sunrise.edu")).json()
    subject_only = client.get("/api/core/students", headers=login("sam@sunrise.edu")).json()
    principal = client.get("/api/core/students", headers=login("principal@sunrise.edu")).json()

    assert {s["id"] for s in homeroom} == {world.student_id, world.classmate_id}
    assert subject_only == []
    assert {s["id"] for s in principal} == {world.student_id, world.classmate_id}


def test_student_detail_scoping(client, world, login):
    url = f"/api/core/students/{world.student_id}"

    assert client.get(url, headers=login("asha@sunrise.edu")).status_code == 200
    assert client.get(url, headers=login("ben@sunrise.edu")).status_code == 403
    assert client.get(url, headers=login("tara@sunrise.edu")).status_code == 200
    assert client.get(url, headers=login("sam@sunrise.edu")).status_code == 403
    assert client.get(url, headers=login("principal@riverside.edu")).status_code == 403


def test_missing_student_is_404_before_scope_check(client, world, login):
    response = client.get("/api/core/students/9999", headers=login("ben@sunrise.edu"))
    assert response.status_code == 404
    assert response.json() == {"message": "Student not found"}


def test_student_move_recaptures_grade_and_section(client, world, login):
    admin = login("admin@classhub.io")
    section = client.post("/api/core/sections", json={"gradeId": world.grade_id, "label": "B"}, headers=admin).json()
    classroom = client.post(
        "/api/core/classrooms",
        json={"schoolId": world.school_id, "gradeId": world.grade_id, "sectionId": section["id"],
              "academicYear": "2025-2026"},
        headers=admin,
    ).json()

    response = client.patch(f"/api/core/students/{world.student_id}", json={"classroomId": classroom["id"]},
                            headers=admin)

    assert response.status_code == 200
    assert response.json()["sectionLabel"] == "B"
    assert response.json()["classroomId"] == classroom["id"]


def test_student_phone_can_be_cleared(client, world, login):
    response = client.patch(f"/api/core/students/{world.student_id}", json={"phoneNumber": None},
                            headers=login("principal@sunrise.edu"))

    assert response.status_code == 200
    assert response.json()["phoneNumber"] is None
