from unittest.mock import patch

import pytest

from school_admin.core.exceptions import ResourceConflictError, ResourceNotFoundError, ValidationError
from school_admin.models.page import Page, RolePagePermission
from school_admin.services.page_service import PageAccessEntry, PageService, page_service
from school_admin.services.role_service import role_service
from tests.helpers import page_named, role_named

ALL_PAGES = {
    "dashboard", "units", "staff", "students", "courses", "classes",
    "schedule", "financial", "support", "settings", "permissions",
}


class TestAllowedPages:
    def test_admin_sees_every_active_page(self, db, admin_user):
        assert page_service.allowed_pages(db, admin_user.id) == ALL_PAGES

    def test_admin_bypass_does_not_need_rows(self, db, admin_user):
        admin = role_named(db, "admin")
        db.query(RolePagePermission).filter(RolePagePermission.role_id == admin.id).delete()
        db.commit()

        assert page_service.allowed_pages(db, admin_user.id) == ALL_PAGES
        assert page_service.has_page_permission(db, admin_user.id, "financial") is True

    def test_role_has_page_is_the_shared_predicate(self, db):
        teacher = role_named(db, "teacher")
        page_service.set_role_page_permissions(db, teacher.id, [
            PageAccessEntry(page_named(db, "classes").id, True),
        ])

        assert page_service.role_has_page(db, teacher.id, "teacher", "classes") is True
        assert page_service.role_has_page(db, teacher.id, "teacher", "financial") is False
        assert page_service.role_has_page(db, None, None, "classes") is False
        with patch.object(PageService, "role_can_access_page") as lookup:
            assert page_service.role_has_page(db, "any-id", "admin", "financial") is True
        lookup.assert_not_called()

    def test_rollback_when_upsert_commit_fails(self, db):
        from sqlalchemy.exc import OperationalError

        secretary = role_named(db, "secretary")
        students = page_named(db, "students")
        with patch.object(db, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk full"))):
            with pytest.raises(OperationalError):
                page_service.set_role_page_permissions(
                    db, secretary.id, [PageAccessEntry(students.id, True)],
                )
        assert page_service.get_role_page_permissions(db, secretary.id) == []

    def test_admin_check_skips_page_grant_lookup(self, db, admin_user):
        with patch.object(PageService, "role_can_access_page") as lookup:
            assert page_service.has_page_permission(db, admin_user.id, "settings") is True
        lookup.assert_not_called()

    def test_role_without_rows_sees_nothing(self, db, make_user):
        teacher = make_user("teacher")
        assert page_service.allowed_pages(db, teacher.id) == set()
        assert page_service.has_page_permission(db, teacher.id, "classes") is False

    def test_only_can_access_rows_count(self, db, make_user):
        teacher_role = role_named(db, "teacher")
        page_service.set_role_page_permissions(db, teacher_role.id, [
            PageAccessEntry(page_named(db, "classes").id, True),
            PageAccessEntry(page_named(db, "schedule").id, True),
            PageAccessEntry(page_named(db, "financial").id, False),
        ])
        teacher = make_user("teacher")

        assert page_service.allowed_pages(db, teacher.id) == {"classes", "schedule"}
        assert page_service.has_page_permission(db, teacher.id, "financial") is False

    def test_inactive_pages_are_hidden(self, db, make_user, admin_user):
        schedule = page_named(db, "schedule")
        teacher_role = role_named(db, "teacher")
        page_service.set_role_page_permissions(db, teacher_role.id, [PageAccessEntry(schedule.id, True)])
        page_service.update_page(db, schedule.id, is_active=False)
        teacher = make_user("teacher")

        assert page_service.allowed_pages(db, teacher.id) == set()
        assert "schedule" not in page_service.allowed_pages(db, admin_user.id)

    def test_unknown_and_roleless_users_see_nothing(self, db, make_user):
        assert page_service.allowed_pages(db, "ghost") == set()
        assert page_service.allowed_pages(db, make_user().id) == set()


class TestSetRolePagePermissions:
    def test_upsert_keeps_omitted_pages(self, db):
        secretary = role_named(db, "secretary")
        students, staff = page_named(db, "students"), page_named(db, "staff")

        page_service.set_role_page_permissions(db, secretary.id, [
            PageAccessEntry(students.id, True), PageAccessEntry(staff.id, True),
        ])
        page_service.set_role_page_permissions(db, secretary.id, [PageAccessEntry(staff.id, False)])

        rows = {r.page.name: r.can_access for r in page_service.get_role_page_permissions(db, secretary.id)}
        assert rows == {"students": True, "staff": False}

    def test_updates_existing_row_in_place(self, db):
        secretary = role_named(db, "secretary")
        students = page_named(db, "students")
        page_service.set_role_page_permissions(db, secretary.id, [PageAccessEntry(students.id, False)])
        page_service.set_role_page_permissions(db, secretary.id, [PageAccessEntry(students.id, True)])

        count = db.query(RolePagePermission).filter(
            RolePagePermission.role_id == secretary.id,
            RolePagePermission.page_id == students.id,
        ).count()
        assert count == 1

    def test_unknown_page_rejected(self, db):
        secretary = role_named(db, "secretary")
        with pytest.raises(ValidationError) as exc_info:
            page_service.set_role_page_permissions(db, secretary.id, [PageAccessEntry("nope", True)])
        assert exc_info.value.details["invalid_ids"] == ["nope"]
        assert page_service.get_role_page_permissions(db, secretary.id) == []

    def test_unknown_role_not_found(self, db):
        with pytest.raises(ResourceNotFoundError):
            page_service.set_role_page_permissions(db, "nope", [])

    def test_role_allowed_pages(self, db):
        teacher = role_named(db, "teacher")
        page_service.set_role_page_permissions(db, teacher.id, [
            PageAccessEntry(page_named(db, "classes").id, True),
        ])
        assert [p.name for p in page_service.role_allowed_pages(db, teacher.id)] == ["classes"]
        admin = role_named(db, "admin")
        assert {p.name for p in page_service.role_allowed_pages(db, admin.id)} == ALL_PAGES


class TestPageCatalog:
    def test_page_names_are_unique_ignoring_case(self, db):
        with pytest.raises(ResourceConflictError):
            page_service.create_page(db, "Students", "Students again", "/students-2")

    def test_blank_name_rejected(self, db):
        with pytest.raises(ValidationError) as exc_info:
            page_service.create_page(db, "   ", "Blank", "/blank")
        assert exc_info.value.details["field"] == "name"

        units = page_named(db, "units")
        with pytest.raises(ValidationError):
            page_service.update_page(db, units.id, name=" ")
        db.refresh(units)
        assert units.name == "units"

    def test_ensure_page_is_idempotent(self, db):
        before = db.query(Page).count()
        page = page_service.ensure_page(db, "dashboard", "Dash", "/dash")
        assert page.route == "/dashboard"
        assert db.query(Page).count() == before

    def test_deleting_page_removes_grants(self, db):
        secretary = role_named(db, "secretary")
        units = page_named(db, "units")
        page_service.set_role_page_permissions(db, secretary.id, [PageAccessEntry(units.id, True)])

        units_id = units.id
        page_service.delete_page(db, units_id)

        assert db.query(RolePagePermission).filter(RolePagePermission.page_id == units_id).count() == 0
        assert role_service.find_role(db, secretary.id) is not None
