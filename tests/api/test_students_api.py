from datetime import date

from tests.helpers import page_named, role_named
from school_admin.services.page_service import PageAccessEntry, page_service

ADULT = {"email": "adult@school.test", "firstName": "Ada", "lastName": "Lovelace", "birthDate": "1990-05-01"}


def _minor_birth_date() -> str:
    today = date.today()
    return date(today.year - 10, 1, 1).isoformat()


def _open_students_page(db, role_name):
    role = role_named(db, role_name)
    page_service.set_role_page_permissions(db, role.id, [PageAccessEntry(page_named(db, "students").id, True)])


class TestStudentsAccess:
    def test_permission_without_page_is_forbidden(self, client, make_user, auth_headers):
        resp = client.post("/api/students", headers=auth_headers(make_user("secretary")), json=ADULT)
        assert resp.status_code == 403
        assert resp.json()["page"] == "students"

    def test_page_without_permission_is_forbidden(self, client, db, make_user, auth_headers):
        _open_students_page(db, "teacher")
        resp = client.get("/api/students", headers=auth_headers(make_user("teacher")))
        assert resp.status_code == 403
        assert resp.json()["permission"] == "students:read"

    def test_permission_and_page_together_pass(self, client, db, make_user, auth_headers):
        _open_students_page(db, "secretary")
        headers = auth_headers(make_user("secretary"))

        created = client.post("/api/students", headers=headers, json=ADULT)
        assert created.status_code == 201
        assert created.json()["email"] == "adult@school.test"
        assert created.json()["guardian"] is None

        listed = client.get("/api/students", headers=headers)
        assert [s["email"] for s in listed.json()] == ["adult@school.test"]

    def test_admin_needs_no_rows(self, client, admin_user, auth_headers):
        assert client.get("/api/students", headers=auth_headers(admin_user)).status_code == 200


class TestStudentEnrolment:
    def test_minor_requires_guardian(self, client, admin_user, auth_headers):
        resp = client.post("/api/students", headers=auth_headers(admin_user), json={
            "email": "kid@school.test", "firstName": "Kid", "lastName": "Doe",
            "birthDate": _minor_birth_date(),
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "guardian"

    def test_minor_with_guardian(self, client, admin_user, auth_headers):
        resp = client.post("/api/students", headers=auth_headers(admin_user), json={
            "email": "kid@school.test", "firstName": "Kid", "lastName": "Doe",
            "birthDate": _minor_birth_date(),
            "guardian": {"firstName": "Jane", "lastName": "Doe", "relationshipType": "mother"},
        })
        assert resp.status_code == 201
        assert resp.json()["guardian"]["relationshipType"] == "mother"

    def test_enrolled_student_can_log_in_with_default_password(self, client, admin_user, auth_headers, settings):
        client.post("/api/students", headers=auth_headers(admin_user), json=ADULT)
        resp = client.post("/api/auth/login", json={
            "email": ADULT["email"], "password": settings.DEFAULT_STUDENT_PASSWORD,
        })
        assert resp.status_code == 200
        assert resp.json()["user"]["roleName"] == "student"

    def test_duplicate_email(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        client.post("/api/students", headers=headers, json=ADULT)
        assert client.post("/api/students", headers=headers, json=ADULT).status_code == 409
