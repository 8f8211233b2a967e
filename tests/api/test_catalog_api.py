from school_admin.models.audit_log import AuditLog
from tests.helpers import page_named, permission_named


def _modules_id(client, headers):
    categories = client.get("/api/permission-categories", headers=headers).json()
    return next(c["id"] for c in categories if c["name"] == "modules")


class TestPermissionsApi:
    def test_list_and_filter_by_category(self, client, make_user, admin_user, auth_headers):
        headers = auth_headers(make_user("teacher"))
        everything = client.get("/api/permissions", headers=headers)
        assert everything.status_code == 200
        assert len(everything.json()) == 20

        modules_id = _modules_id(client, auth_headers(admin_user))
        modules = client.get("/api/permissions", params={"categoryId": modules_id}, headers=headers).json()
        assert {p["categoryName"] for p in modules} == {"modules"}
        assert len(modules) == 18

    def test_by_category(self, client, make_user, auth_headers):
        resp = client.get("/api/permissions/by-category", headers=auth_headers(make_user("student")))
        assert resp.status_code == 200
        admin_names = {p["name"] for p in resp.json()["categories"]["admin"]}
        assert admin_names == {"settings:read", "permissions:manage"}

    def test_create_requires_admin(self, client, admin_user, make_user, auth_headers):
        body = {
            "name": "reports:export",
            "displayName": "Export reports",
            "categoryId": _modules_id(client, auth_headers(admin_user)),
        }
        forbidden = client.post("/api/permissions", json=body, headers=auth_headers(make_user("secretary")))
        assert forbidden.status_code == 403

        created = client.post("/api/permissions", json=body, headers=auth_headers(admin_user))
        assert created.status_code == 201
        assert created.json()["name"] == "reports:export"

    def test_malformed_name_is_400(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        resp = client.post("/api/permissions", headers=headers, json={
            "name": "Export Reports", "displayName": "Export", "categoryId": _modules_id(client, headers),
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "name"

    def test_delete_drops_it_from_effective_sets(self, client, db, admin_user, make_user, auth_headers):
        secretary = make_user("secretary")
        finance_id = permission_named(db, "finance:read").id

        resp = client.delete(f"/api/permissions/{finance_id}", headers=auth_headers(admin_user))
        assert resp.status_code == 200

        effective = client.get("/api/auth/effective-permissions", headers=auth_headers(secretary)).json()
        assert "finance:read" not in {p["name"] for p in effective["permissions"]}
        assert client.get(f"/api/permissions/{finance_id}", headers=auth_headers(admin_user)).status_code == 404

        db.expire_all()
        entry = db.query(AuditLog).filter(AuditLog.action == "permission.deleted").one()
        assert entry.resource_type == "permission"
        assert entry.resource_id == finance_id


class TestPermissionCategoriesApi:
    def test_admin_only(self, client, make_user, auth_headers):
        resp = client.get("/api/permission-categories", headers=auth_headers(make_user("secretary")))
        assert resp.status_code == 403

    def test_system_category_is_protected(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        modules_id = _modules_id(client, headers)

        assert client.delete(f"/api/permission-categories/{modules_id}", headers=headers).status_code == 403
        renamed = client.put(f"/api/permission-categories/{modules_id}", headers=headers, json={"name": "mods"})
        assert renamed.status_code == 403

    def test_non_empty_category_cannot_be_deleted(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        category = client.post("/api/permission-categories", headers=headers, json={
            "name": "reports", "displayName": "Reports",
        }).json()
        client.post("/api/permissions", headers=headers, json={
            "name": "reports:export", "displayName": "Export", "categoryId": category["id"],
        })

        resp = client.delete(f"/api/permission-categories/{category['id']}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["permissionCount"] == 1

    def test_blank_name_is_400(self, client, admin_user, auth_headers):
        resp = client.post("/api/permission-categories", headers=auth_headers(admin_user), json={
            "name": "    ", "displayName": "Blank",
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "name"


class TestPagesApi:
    def test_any_user_can_list(self, client, make_user, auth_headers):
        resp = client.get("/api/pages", headers=auth_headers(make_user("student")))
        assert resp.status_code == 200
        assert len(resp.json()) == 11

    def test_crud(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        created = client.post("/api/pages", headers=headers, json={
            "name": "reports", "displayName": "Reports", "route": "/reports",
        })
        assert created.status_code == 201
        page_id = created.json()["id"]

        updated = client.put(f"/api/pages/{page_id}", headers=headers, json={"isActive": False})
        assert updated.json()["isActive"] is False

        assert client.delete(f"/api/pages/{page_id}", headers=headers).status_code == 200
        assert client.get(f"/api/pages/{page_id}", headers=headers).status_code == 404

    def test_writes_require_admin(self, client, db, make_user, auth_headers):
        units = page_named(db, "units")
        headers = auth_headers(make_user("secretary"))
        assert client.delete(f"/api/pages/{units.id}", headers=headers).status_code == 403

    def test_blank_name_is_400(self, client, admin_user, auth_headers):
        resp = client.post("/api/pages", headers=auth_headers(admin_user), json={
            "name": "   ", "displayName": "Blank", "route": "/blank",
        })
        assert resp.status_code == 400


class TestBlankRoleNames:
    def test_create(self, client, admin_user, auth_headers):
        resp = client.post("/api/roles", headers=auth_headers(admin_user), json={
            "name": "   ", "displayName": "Blank",
        })
        assert resp.status_code == 400
        assert resp.json()["field"] == "name"

    def test_rename(self, client, admin_user, auth_headers):
        headers = auth_headers(admin_user)
        role_id = client.post("/api/roles", headers=headers, json={
            "name": "coordinator", "displayName": "Coordinator",
        }).json()["id"]

        resp = client.put(f"/api/roles/{role_id}", headers=headers, json={"name": "  "})
        assert resp.status_code == 400
        assert client.get(f"/api/roles/{role_id}", headers=headers).json()["role"]["name"] == "coordinator"

