from app.adminhub.core.tenancy import TenantScopeGuard, get_tenant_scope
from app.adminhub.repos.audit import AuditRepository
from tests.rbac_helpers import auth_headers, create_role, create_tenant, create_user, seed_defaults, superadmin


def _admin_headers(db_session):
    return auth_headers(superadmin(db_session))


def test_create_and_get_role(client, db_session):
    seed_defaults(db_session)
    headers = _admin_headers(db_session)

    created = client.post(
        "/adminhub/roles",
        json={"name": "Sales Rep", "code": " sales_rep ", "description": "Front line", "priority": 5},
        headers=headers,
    )

    assert created.status_code == 201
    role = created.json()["role"]
    assert role["code"] == "SALES_REP"
    assert role["is_system"] is False
    assert role["status"] == "active"

    fetched = client.get(f"/adminhub/roles/{role['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["role"]["user_count"] == 0

    events = AuditRepository(db_session).list_for_entity("role", role["id"])
    assert [event.action for event in events] == ["roles.create"]


def test_create_duplicate_code_conflicts(client, db_session):
    seed_defaults(db_session)
    headers = _admin_headers(db_session)
    client.post("/adminhub/roles", json={"name": "Sales", "code": "SALES"}, headers=headers)

    response = client.post("/adminhub/roles", json={"name": "Sales again", "code": "sales"}, headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "ROLE_CODE_CONFLICT"


def test_create_validates_payload(client, db_session):
    seed_defaults(db_session)

    response = client.post("/adminhub/roles", json={"name": "", "code": "X"}, headers=_admin_headers(db_session))

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_list_roles_filters(client, db_session):
    seed_defaults(db_session)
    create_role(db_session, "SALES")
    create_role(db_session, "ARCHIVED_SALES", status="inactive")
    headers = _admin_headers(db_session)

    everything = client.get("/adminhub/roles", headers=headers).json()
    searched = client.get("/adminhub/roles", params={"search": "sales"}, headers=headers).json()
    inactive = client.get("/adminhub/roles", params={"status": "inactive"}, headers=headers).json()

    codes = {item["code"] for item in everything["roles"]}
    assert {"SUPER_ADMIN", "USER", "SALES", "ARCHIVED_SALES"} <= codes
    assert everything["total"] == len(everything["roles"])
    assert {item["code"] for item in searched["roles"]} == {"SALES", "ARCHIVED_SALES"}
    assert [item["code"] for item in inactive["roles"]] == ["ARCHIVED_SALES"]


def test_update_role_fields(client, db_session):
    seed_defaults(db_session)
    role = create_role(db_session, "SALES")

    response = client.patch(
        f"/adminhub/roles/{role.id}",
        json={"name": "Sales Team", "status": "inactive", "code": "sales_team"},
        headers=_admin_headers(db_session),
    )

    assert response.status_code == 200
    body = response.json()["role"]
    assert body["name"] == "Sales Team"
    assert body["status"] == "inactive"
    assert body["code"] == "SALES_TEAM"
    events = AuditRepository(db_session).list_for_entity("role", str(role.id))
    assert events[-1].before_payload["code"] == "SALES"
    assert events[-1].after_payload["code"] == "SALES_TEAM"


def test_system_role_code_is_protected(client, db_session):
    seed_defaults(db_session)
    admin = superadmin(db_session)

    response = client.patch(
        f"/adminhub/roles/{admin.role_id}",
        json={"code": "ROOT"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 409
    assert response.json()["code"] == "SYSTEM_ROLE_PROTECTED"


def test_system_role_name_can_change(client, db_session):
    seed_defaults(db_session)
    admin = superadmin(db_session)

    response = client.patch(f"/adminhub/roles/{admin.role_id}", json={"name": "Owner"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["role"]["code"] == "SUPER_ADMIN"


def test_delete_role_soft_deletes(client, db_session):
    seed_defaults(db_session)
    role = create_role(db_session, "TEMP")
    headers = _admin_headers(db_session)

    response = client.delete(f"/adminhub/roles/{role.id}", headers=headers)

    assert response.status_code == 200
    assert client.get(f"/adminhub/roles/{role.id}", headers=headers).status_code == 404
    db_session.expire_all()
    db_session.refresh(role)
    assert role.deleted_at is not None


def test_delete_system_role_is_rejected(client, db_session):
    seed_defaults(db_session)
    admin = superadmin(db_session)

    response = client.delete(f"/adminhub/roles/{admin.role_id}", headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.json()["code"] == "SYSTEM_ROLE_PROTECTED"


def test_delete_role_in_use_is_rejected(client, db_session):
    seed_defaults(db_session)
    role = create_role(db_session, "STAFF")
    create_user(db_session, role)

    response = client.delete(f"/adminhub/roles/{role.id}", headers=_admin_headers(db_session))

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "ROLE_IN_USE"
    assert body["details"]["user_count"] == 1


def test_roles_endpoints_require_permissions(client, db_session):
    seed_defaults(db_session)
    reader = create_user(db_session, create_role(db_session, "READER", permission_codes=["roles:read"]))
    headers = auth_headers(reader)

    assert client.get("/adminhub/roles", headers=headers).status_code == 200
    denied = client.post("/adminhub/roles", json={"name": "X", "code": "X"}, headers=headers)
    assert denied.status_code == 403
    assert denied.json()["details"] == {"required": "roles:create"}
    assert client.get("/adminhub/roles").status_code == 401


def test_scoped_tenant_admin_cannot_change_global_role(app, client, db_session):
    seed_defaults(db_session)
    tenant = create_tenant(db_session)
    shared = create_role(db_session, "SHARED")
    admin_role = create_role(db_session, "TENANT_ADMIN", tenant_id=tenant.id, permission_codes=["roles:*"])
    headers = auth_headers(create_user(db_session, admin_role, tenant_id=tenant.id))
    app.dependency_overrides[get_tenant_scope] = lambda: TenantScopeGuard(True)

    assert client.get(f"/adminhub/roles/{shared.id}", headers=headers).status_code == 200
    renamed = client.patch(f"/adminhub/roles/{shared.id}", json={"name": "Hijacked"}, headers=headers)
    deleted = client.delete(f"/adminhub/roles/{shared.id}", headers=headers)

    assert renamed.status_code == 403
    assert renamed.json()["details"]["required"] == "admin:*"
    assert deleted.status_code == 403
    db_session.expire_all()
    assert shared.name == "Shared"
    assert shared.deleted_at is None
