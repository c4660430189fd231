import uuid

from jose import jwt
from sqlalchemy import select

from app.adminhub.core import security
from app.adminhub.core.context import build_principal_context
from app.adminhub.db.models import Module, ModuleField, PermissionCatalog, Role, RolePermission, Tenant, User
from app.adminhub.db.seed import run_seed


def seed_defaults(db_session):
    run_seed(db_session)


def create_tenant(db_session, name: str | None = None) -> Tenant:
    tenant = Tenant(id=uuid.uuid4(), name=name or f"Tenant {uuid.uuid4().hex[:8]}")
    db_session.add(tenant)
    db_session.commit()
    return tenant


def permission(db_session, code: str) -> PermissionCatalog:
    return db_session.execute(select(PermissionCatalog).where(PermissionCatalog.code == code)).scalars().one()


def module(db_session, code: str) -> Module:
    return db_session.execute(select(Module).where(Module.code == code)).scalars().one()


def field(db_session, module_code: str, field_code: str) -> ModuleField:
    owner = module(db_session, module_code)
    return (
        db_session.execute(select(ModuleField).where(ModuleField.module_id == owner.id, ModuleField.code == field_code))
        .scalars()
        .one()
    )


def create_role(
    db_session,
    code: str,
    *,
    tenant_id=None,
    permission_codes=(),
    status: str = "active",
    is_system: bool = False,
) -> Role:
    role = Role(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        code=code,
        name=code.replace("_", " ").title(),
        status=status,
        is_system=is_system,
    )
    db_session.add(role)
    db_session.flush()
    for code_value in permission_codes:
        db_session.add(
            RolePermission(
                role_id=role.id,
                permission_id=permission(db_session, code_value).id,
                tenant_id=tenant_id,
            )
        )
    db_session.commit()
    return role


def create_user(db_session, role: Role | None, *, tenant_id=None, username: str | None = None, **overrides) -> User:
    username = username or f"user_{uuid.uuid4().hex[:8]}"
    values = {
        "id": uuid.uuid4(),
        "tenant_id": tenant_id,
        "role_id": role.id if role is not None else None,
        "username": username,
        "email": f"{username}@example.com",
        "status": "active",
        "is_active": True,
    }
    values.update(overrides)
    user = User(**values)
    db_session.add(user)
    db_session.commit()
    return user


def superadmin(db_session) -> User:
    return (
        db_session.execute(select(User).where(User.username == security.settings.SUPERADMIN_USERNAME))
        .scalars()
        .one()
    )


def principal_for(user: User, *, tenant_scoped: bool = False):
    return build_principal_context(
        user_id=user.id,
        tenant_id=user.tenant_id if tenant_scoped else None,
        role_id=user.role_id,
        trace_id="trace-test",
        username=user.username,
    )


def token_for(user_id) -> str:
    return jwt.encode(
        {"sub": str(user_id)},
        security.settings.SECRET_KEY,
        algorithm=security.settings.ALGORITHM,
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user.id)}"}
