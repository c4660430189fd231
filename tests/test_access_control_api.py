from app.adminhub.db.models import RoleFieldPermission, RoleModuleAccess
from tests.rbac_helpers import auth_headers, create_role, create_user, field, module, seed_defaults, superadmin


def _sales_user(db_session):
    role = create_role(db_session, "SALES", permission_codes=["leads:*", "notes:read"])
    leads = module(db_session, "leads")
    db_session.add(RoleModuleAccess(role_id=role.id, module_id=leads.id, has_access=True, data_access="own"))
    db_session.add(
        RoleFieldPermission(
            role_id=role.id,
            module_id=leads.id,
            field_id=field(db_session, "leads", "email").id,
            is_visible=True,
            is_editable=False,
        )
    )
    db_session.commit()
    return create_user(db_session, role)


def test_effective_permissions(client, db_session):
    seed_defaults(db_session)
    user = _sales_user(db_session)

    response = client.get("/adminhub/access-control/effective-permissions", headers=auth_headers(user))

    assert response.status_code == 200
    payload = response.json()
    assert payload["user_id"] == str(user.id)
    assert payload["role_id"] == str(user.role_id)
    assert payload["tenant_id"] is None
    assert payload["permissions"] == ["leads:*", "notes:read"]
    assert payload["trace_id"]


def test_effective_permissions_unauthorized(client):
    response = client.get("/adminhub/access-control/effective-permissions")

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_check_permission_uses_wildcards(client, db_session):
    seed_defaults(db_session)
    headers = auth_headers(_sales_user(db_session))

    def allowed(code):
        response = client.get("/adminhub/access-control/check", params={"code": code}, headers=headers)
        assert response.status_code == 200
        return response.json()["allowed"]

    assert allowed("leads:export") is True
    assert allowed("notes:read") is True
    assert allowed("notes:delete") is False
    assert allowed("projects:create") is False


def test_superadmin_passes_every_check(client, db_session):
    seed_defaults(db_session)

    response = client.get(
        "/adminhub/access-control/check",
        params={"code": "anything:whatever"},
        headers=auth_headers(superadmin(db_session)),
    )

    assert response.json()["allowed"] is True


def test_module_access(client, db_session):
    seed_defaults(db_session)
    headers = auth_headers(_sales_user(db_session))

    leads = client.get("/adminhub/access-control/modules/leads", headers=headers).json()
    notes = client.get("/adminhub/access-control/modules/notes", headers=headers).json()

    assert leads["has_access"] is True
    assert leads["data_access"] == "own"
    assert leads["visible_fields"] == ["email"]
    assert leads["editable_fields"] == []
    # Flat codes and module grants answer different questions.
    assert notes["has_access"] is False
    assert notes["data_access"] == "none"


def test_field_visibility(client, db_session):
    seed_defaults(db_session)
    headers = auth_headers(_sales_user(db_session))

    email = client.get("/adminhub/access-control/modules/leads/fields/email", headers=headers).json()
    phone = client.get("/adminhub/access-control/modules/leads/fields/phone", headers=headers).json()
    unknown = client.get("/adminhub/access-control/modules/ghost/fields/email", headers=headers)

    assert (email["visible"], email["editable"]) == (True, False)
    assert (phone["visible"], phone["editable"]) == (False, False)
    assert unknown.status_code == 200
    assert unknown.json()["visible"] is False
