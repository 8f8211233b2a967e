from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from school_admin.core.exceptions import AuthenticationError, AuthorizationError
from school_admin.core.security import create_access_token
from school_admin.models.role import RolePermission
from school_admin.services.authorization import AuthenticatedPrincipal, AuthorizationGate
from school_admin.services.auth_service import auth_service
from school_admin.services.override_service import OverrideEntry, override_service
from school_admin.services.page_service import PageAccessEntry, page_service
from school_admin.services.role_service import role_service
from tests.helpers import page_named, permission_named, role_named


@pytest.fixture
def gate(db, settings) -> AuthorizationGate:
    return AuthorizationGate(db, settings)


def _principal(gate, user, settings) -> AuthenticatedPrincipal:
    return gate.authenticate(auth_service.issue_token(user, settings))


class TestAuthenticate:
    def test_valid_token_yields_principal_with_current_role(self, gate, settings, make_user):
        user = make_user("teacher")
        principal = _principal(gate, user, settings)

        assert principal.user_id == user.id
        assert principal.email == user.email
        assert principal.role_name == "teacher"

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_missing_or_malformed_token(self, gate, token):
        with pytest.raises(AuthenticationError):
            gate.authenticate(token)

    def test_wrong_secret(self, gate, settings, make_user):
        user = make_user("teacher")
        forged = create_access_token(
            {"sub": user.id}, settings.model_copy(update={"JWT_SECRET": "other-secret"}),
        )
        with pytest.raises(AuthenticationError):
            gate.authenticate(forged)

    def test_expired_token(self, gate, settings, make_user):
        user = make_user("teacher")
        expired = create_access_token({"sub": user.id}, settings, expires_delta=timedelta(minutes=-5))
        with pytest.raises(AuthenticationError):
            gate.authenticate(expired)

    def test_deactivated_user(self, gate, db, settings, make_user):
        user = make_user("teacher")
        token = auth_service.issue_token(user, settings)
        auth_service.update_user(db, user.id, {"is_active": False})

        with pytest.raises(AuthenticationError):
            gate.authenticate(token)

    def test_deleted_user(self, gate, db, settings, make_user):
        user = make_user("teacher")
        token = auth_service.issue_token(user, settings)
        auth_service.delete_user(db, user.id)

        with pytest.raises(AuthenticationError):
            gate.authenticate(token)

    def test_role_claim_in_token_is_not_trusted(self, gate, db, settings, make_user):
        user = make_user("student")
        token = create_access_token({"sub": user.id, "role": "admin"}, settings)

        principal = gate.authenticate(token)
        assert principal.role_name == "student"
        assert gate.is_admin(principal) is False

    def test_inactive_role_yields_roleless_principal(self, gate, db, settings, make_user):
        role = role_service.create_role(db, "coordinator", "Coordinator")
        user = make_user()
        auth_service.update_user(db, user.id, {"role_id": role.id})
        role_service.update_role(db, role.id, is_active=False)

        principal = _principal(gate, user, settings)
        assert principal.role_id is None
        assert principal.role_name is None


class TestRequirePermission:
    def test_secretary_scenario(self, gate, settings, make_user):
        principal = _principal(gate, make_user("secretary"), settings)

        gate.require_permission(principal, "students:write")
        with pytest.raises(AuthorizationError):
            gate.require_permission(principal, "permissions:manage")

    def test_admin_passes_without_any_role_rows(self, gate, db, settings, admin_user):
        admin = role_named(db, "admin")
        db.query(RolePermission).filter(RolePermission.role_id == admin.id).delete()
        db.commit()
        principal = _principal(gate, admin_user, settings)

        gate.require_permission(principal, "permissions:manage")
        gate.require_permission(principal, "anything:at_all")

    def test_admin_bypass_runs_no_queries(self, settings):
        db = MagicMock(spec=Session)
        gate = AuthorizationGate(db, settings)
        principal = AuthenticatedPrincipal("u1", "a@school.test", "r1", "admin")

        gate.require_permission(principal, "students:write")
        gate.require_page_permission(principal, "financial")
        gate.require_admin(principal)
        gate.require_admin_or_secretary(principal)

        db.query.assert_not_called()

    def test_override_applies_without_new_login(self, gate, db, settings, make_user):
        user = make_user("teacher")
        principal = _principal(gate, user, settings)
        assert gate.has_permission(principal, "classes:write") is False

        override_service.set_user_permission_overrides(
            db, user.id, [OverrideEntry(permission_named(db, "classes:write").id, True)],
        )

        assert gate.has_permission(principal, "classes:write") is True

    def test_store_errors_are_not_reported_as_denial(self, settings):
        db = MagicMock(spec=Session)
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("database is down"))
        gate = AuthorizationGate(db, settings)
        principal = AuthenticatedPrincipal("u1", "t@school.test", "r1", "teacher")

        with pytest.raises(OperationalError):
            gate.require_permission(principal, "classes:read")
        with pytest.raises(OperationalError):
            gate.require_page_permission(principal, "classes")

    def test_denials_are_logged(self, gate, settings, make_user, caplog):
        principal = _principal(gate, make_user("student"), settings)
        with caplog.at_level("INFO", logger="school_admin.authz"):
            with pytest.raises(AuthorizationError):
                gate.require_permission(principal, "finance:write")
        assert "finance:write" in caplog.text

    def test_checks_do_not_write(self, gate, db, settings, make_user):
        principal = _principal(gate, make_user("teacher"), settings)
        with patch.object(db, "commit") as commit:
            gate.has_permission(principal, "classes:read")
            gate.has_page_permission(principal, "classes")
            gate.visible_permissions(principal)
        commit.assert_not_called()
        assert not db.new and not db.dirty and not db.deleted


class TestPageAndRoleChecks:
    def test_page_and_permission_are_independent(self, gate, db, settings, make_user):
        principal = _principal(gate, make_user("secretary"), settings)

        assert gate.has_permission(principal, "students:write") is True
        assert gate.has_page_permission(principal, "students") is False

        secretary = role_named(db, "secretary")
        page_service.set_role_page_permissions(
            db, secretary.id, [PageAccessEntry(page_named(db, "students").id, True)],
        )
        gate.require_page_permission(principal, "students")

    def test_roleless_principal_has_no_pages(self, gate, settings, make_user):
        principal = _principal(gate, make_user(), settings)
        with pytest.raises(AuthorizationError):
            gate.require_page_permission(principal, "dashboard")

    @pytest.mark.parametrize("role_name, admin_ok, staff_ok", [
        ("admin", True, True),
        ("secretary", False, True),
        ("teacher", False, False),
        ("student", False, False),
        (None, False, False),
    ])
    def test_coarse_role_checks(self, gate, settings, make_user, role_name, admin_ok, staff_ok):
        principal = _principal(gate, make_user(role_name), settings)

        if admin_ok:
            gate.require_admin(principal)
        else:
            with pytest.raises(AuthorizationError):
                gate.require_admin(principal)

        if staff_ok:
            gate.require_admin_or_secretary(principal)
        else:
            with pytest.raises(AuthorizationError):
                gate.require_admin_or_secretary(principal)

    def test_visible_permissions(self, gate, db, settings, admin_user, make_user):
        admin = _principal(gate, admin_user, settings)
        student = _principal(gate, make_user("student"), settings)

        assert len(gate.visible_permissions(admin)) == 20
        assert [p.name for p in gate.visible_permissions(student)] == ["lessons:read", "support:read"]
