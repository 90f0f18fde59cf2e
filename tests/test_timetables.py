from classhub.models.timetables import ClassroomTimetable


def _url(world):
    return f"/api/timetables/classrooms/{world.classroom_id}"


def test_duplicate_slot_rejected_without_writes(client, world, login, db):
    principal = login("principal@sunrise.edu")
    client.put(_url(world), json={"entries": [{"weekDay": 2, "period": 1, "label": "Art"}]}, headers=principal)

    response = client.put(_url(world), json={"entries": [
        {"weekDay": 1, "period": 1, "label": "Maths"},
        {"weekDay": 1, "period": 1, "label": "English"},
    ]}, headers=principal)

    assert response.status_code == 400
    rows = db.query(ClassroomTimetable).filter(ClassroomTimetable.classroom_id == world.classroom_id).all()
    assert [(r.week_day, r.period, r.label) for r in rows] == [(2, 1, "Art")]


def test_replace_discards_previous_entries_and_orders_result(client, world, login, subject_assignment):
    admin = login("admin@classhub.io")
    client.put(_url(world), json={"entries": [{"weekDay": 5, "period": 8, "label": "Old"}]}, headers=admin)

    response = client.put(_url(world), json={"entries": [
        {"weekDay": 2, "period": 1},
        {"weekDay": 1, "period": 2, "startTime": "09:00", "endTime": "09:45", "teacherSubjectId": subject_assignment},
        {"weekDay": 1, "period": 1, "label": "Assembly", "location": "Hall"},
    ]}, headers=admin)

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [(e["weekDay"], e["period"]) for e in entries] == [(1, 1), (1, 2), (2, 1)]
    assert entries[0]["label"] == "Assembly"
    assert entries[1]["label"] == "Mathematics"
    assert entries[1]["startTime"] == "09:00"
    assert entries[1]["teacherName"] == "Sam Science"
    assert entries[2]["label"] == "Period 1"


def test_entry_ranges_and_times_validated(client, world, login):
    admin = login("admin@classhub.io")

    bad_day = client.put(_url(world), json={"entries": [{"weekDay": 8, "period": 1}]}, headers=admin)
    bad_time = client.put(_url(world), json={"entries": [{"weekDay": 1, "period": 1, "startTime": "9am"}]},
                          headers=admin)
    backwards = client.put(_url(world), json={"entries": [
        {"weekDay": 1, "period": 1, "startTime": "10:00", "endTime": "09:00"}]}, headers=admin)

    assert bad_day.status_code == bad_time.status_code == backwards.status_code == 400


def test_teacher_subject_must_belong_to_classroom(client, world, login, subject_assignment):
    response = client.put(
        f"/api/timetables/classrooms/{world.other_classroom_id}",
        json={"entries": [{"weekDay": 1, "period": 1, "teacherSubjectId": subject_assignment}]},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 400


def test_replace_limited_to_own_school_principal(client, world, login):
    entries = {"entries": [{"weekDay": 1, "period": 1}]}

    assert client.put(_url(world), json=entries, headers=login("principal@riverside.edu")).status_code == 403
    assert client.put(_url(world), json=entries, headers=login("tara@sunrise.edu")).status_code == 403


def test_timetable_visibility(client, world, login):
    client.put(_url(world), json={"entries": [{"weekDay": 1, "period": 1}]}, headers=login("admin@classhub.io"))

    assert client.get(_url(world), headers=login("asha@sunrise.edu")).status_code == 200
    assert client.get(_url(world), headers=login("tara@sunrise.edu")).status_code == 200
    assert client.get(_url(world), headers=login("sam@sunrise.edu")).status_code == 403

    own = client.get(f"/api/timetables/students/{world.student_id}", headers=login("asha@sunrise.edu"))
    other = client.get(f"/api/timetables/students/{world.student_id}", headers=login("ben@sunrise.edu"))
    assert own.status_code == 200
    assert own.json()["classroomId"] == world.classroom_id
    assert len(own.json()["entries"]) == 1
    assert other.status_code == 403
