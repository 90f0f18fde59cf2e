from classhub.core.security import decode_token
from classhub.models.users import User

from conftest import PASSWORD


def test_login_returns_token_with_scope_claims(client, world):
    response = client.post("/api/auth/login", json={"email": "tara@sunrise.edu", "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "TEACHER"
    assert body["teacherId"] == world.teacher_id
    assert body["schoolId"] == world.school_id
    assert body["studentId"] is None
    assert body["expiresIn"] == "12h"

    claims = decode_token(body["token"])
    assert claims["role"] == "TEACHER"
    assert claims["schoolId"] == world.school_id
    assert claims["sub"] == str(body["userId"])


def test_student_school_claim_comes_from_student_record(client, world):
    response = client.post("/api/auth/login", json={"email": "asha@sunrise.edu", "password": PASSWORD})

    assert response.json()["schoolId"] == world.school_id
    assert response.json()["studentId"] == world.student_id


def test_bad_credentials_are_undifferentiated(client, world):
    wrong_password = client.post("/api/auth/login", json={"email": "tara@sunrise.edu", "password": "not-the-password"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@sunrise.edu", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid credentials"}


def test_validation_errors_use_envelope(client, world):
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "short"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert {error["field"] for error in body["errors"]} == {"email", "password"}


def test_missing_or_garbage_token_is_401(client, world):
    assert client.get("/api/core/schools").status_code == 401
    response = client.get("/api/core/schools", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert "message" in response.json()


def test_blocked_user_rejected_even_with_live_token(client, world, login, db):
    headers = login("tara@sunrise.edu")
    assert client.get("/api/core/schools", headers=headers).status_code == 200

    user_id = db.query(User.id).filter(User.email == "tara@sunrise.edu").scalar()
    response = client.patch(
        f"/api/auth/users/{user_id}/status", json={"status": "blocked"}, headers=login("admin@classhub.io"))
    assert response.status_code == 200
    assert response.json()["status"] == "blocked"

    rejected = client.get("/api/core/schools", headers=headers)
    assert rejected.status_code == 403
    assert rejected.json()["message"] == "User is blocked"

    relogin = client.post("/api/auth/login", json={"email": "tara@sunrise.edu", "password": PASSWORD})
    assert relogin.status_code == 403


def test_set_status_requires_admin_and_existing_user(client, world, login):
    principal = login("principal@sunrise.edu")
    assert client.patch("/api/auth/users/1/status", json={"status": "blocked"}, headers=principal).status_code == 403

    missing = client.patch("/api/auth/users/9999/status", json={"status": "blocked"}, headers=login("admin@classhub.io"))
    assert missing.status_code == 404


def test_admin_creates_principal_without_exposing_hash(client, world, login):
    response = client.post(
        "/api/auth/users",
        json={"email": "new.principal@sunrise.edu", "password": PASSWORD, "role": "PRINCIPAL",
              "schoolId": world.school_id},
        headers=login("admin@classhub.io"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "PRINCIPAL"
    assert "passwordHash" not in body and "password" not in body


def test_role_link_contract_is_validated(client, world, login):
    response = client.post(
        "/api/auth/users",
        json={"email": "kid@sunrise.edu", "password": PASSWORD, "role": "STUDENT"},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 400


def test_duplicate_email_conflicts(client, world, login):
    response = client.post(
        "/api/auth/users",
        json={"email": "tara@sunrise.edu", "password": PASSWORD, "role": "TEACHER", "teacherId": world.teacher_id},
        headers=login("admin@classhub.io"),
    )
    assert response.status_code == 409


def test_principal_limited_to_own_school_students_and_teachers(client, world, login):
    principal = login("principal@sunrise.edu")

    as_admin = client.post(
        "/api/auth/users",
        json={"email": "boss@sunrise.edu", "password": PASSWORD, "role": "ADMIN"},
        headers=principal,
    )
    assert as_admin.status_code == 403

    foreign_student = client.post(
        "/api/auth/users",
        json={"email": "omid@riverside.edu", "password": PASSWORD, "role": "STUDENT",
              "studentId": world.other_student_id},
        headers=principal,
    )
    assert foreign_student.status_code == 403

    missing_student = client.post(
        "/api/auth/users",
        json={"email": "ghost@sunrise.edu", "password": PASSWORD, "role": "STUDENT", "studentId": 9999},
        headers=principal,
    )
    assert missing_student.status_code == 404

    own_teacher = client.post(
        "/api/auth/users",
        json={"email": "sam.two@sunrise.edu", "password": PASSWORD, "role": "TEACHER",
              "teacherId": world.subject_teacher_id},
        headers=principal,
    )
    assert own_teacher.status_code == 201
    assert own_teacher.json()["schoolId"] == world.school_id


def test_list_users_is_school_scoped_for_principals(client, world, login):
    everyone = client.get("/api/auth/users", headers=login("gov@classhub.io")).json()
    own_school = client.get("/api/auth/users", headers=login("principal@riverside.edu")).json()

    assert len(everyone) == 8
    assert [u["email"] for u in own_school] == ["principal@riverside.edu"]
    assert client.get("/api/auth/users", headers=login("tara@sunrise.edu")).status_code == 403


def test_user_for_unknown_school_is_404(client, world, login, db):
    response = client.post(
        "/api/auth/users",
        json={"email": "ghost.principal@sunrise.edu", "password": PASSWORD, "role": "PRINCIPAL", "schoolId": 9999},
        headers=login("admin@classhub.io"),
    )

    assert response.status_code == 404
    assert db.query(User).filter(User.email == "ghost.principal@sunrise.edu").count() == 0
