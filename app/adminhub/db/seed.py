from sqlalchemy import select

from app.adminhub.core.config import settings
from app.adminhub.db.models import (
    Module,
    ModuleField,
    PermissionCatalog,
    Role,
    RoleModuleAccess,
    RolePermission,
    Tenant,
    User,
)


CRUD_ACTIONS = ("read", "create", "update", "delete")
DANGEROUS_ACTIONS = {"delete"}

DEFAULT_MODULES = [
    ("users", "Users", "users", [("username", "Username", "text"), ("email", "Email", "email"), ("status", "Status", "select")]),
    ("roles", "Roles", "shield", [("code", "Code", "text"), ("name", "Name", "text"), ("description", "Description", "textarea")]),
    ("notes", "Notes", "file-text", [("title", "Title", "text"), ("body", "Body", "textarea")]),
    ("leads", "Leads", "target", [("name", "Name", "text"), ("email", "Email", "email"), ("phone", "Phone", "text"), ("value", "Deal value", "number")]),
    ("projects", "Projects", "folder", [("name", "Name", "text"), ("budget", "Budget", "number"), ("status", "Status", "select")]),
    ("students", "Students", "graduation-cap", [("name", "Name", "text"), ("email", "Email", "email"), ("grade", "Grade", "number")]),
    ("profile", "Profile", "user", [("display_name", "Display name", "text"), ("avatar", "Avatar", "image")]),
]

SUPER_ADMIN_ROLE = "SUPER_ADMIN"
USER_ROLE = "USER"

DEFAULT_ROLES = {
    SUPER_ADMIN_ROLE: ("Super Admin", "Full access to every module.", 100, ["admin:*"]),
    USER_ROLE: ("User", "Default role for new accounts.", 0, ["notes:read", "notes:create", "profile:read", "profile:update"]),
}


def _get_or_create_tenant(db):
    tenant = db.execute(select(Tenant).where(Tenant.name == settings.DEFAULT_TENANT_NAME)).scalars().first()
    if tenant:
        return tenant
    tenant = Tenant(name=settings.DEFAULT_TENANT_NAME)
    db.add(tenant)
    db.flush()
    return tenant


def _get_or_create_modules(db):
    existing = {module.code: module for module in db.execute(select(Module)).scalars().all()}
    for sort_order, (code, name, icon, fields) in enumerate(DEFAULT_MODULES):
        module = existing.get(code)
        if module is None:
            module = Module(code=code, name=name, icon=icon, sort_order=sort_order, is_active=True)
            db.add(module)
            db.flush()
            existing[code] = module
        field_codes = set(
            db.execute(select(ModuleField.code).where(ModuleField.module_id == module.id)).scalars().all()
        )
        for field_order, (field_code, label, field_type) in enumerate(fields):
            if field_code in field_codes:
                continue
            db.add(
                ModuleField(
                    module_id=module.id,
                    code=field_code,
                    name=field_code,
                    label=label,
                    field_type=field_type,
                    sort_order=field_order,
                )
            )
    return existing


def _get_or_create_permissions(db):
    existing = set(db.execute(select(PermissionCatalog.code)).scalars().all())
    entries = [("admin:*", "admin", "*", "Every permission in every module", True)]
    for code, name, _icon, _fields in DEFAULT_MODULES:
        for action in CRUD_ACTIONS:
            entries.append((f"{code}:{action}", code, action, f"{action.capitalize()} {name.lower()}", action in DANGEROUS_ACTIONS))
        entries.append((f"{code}:*", code, "*", f"Every action on {name.lower()}", False))
    for code, module, action, description, is_dangerous in entries:
        if code in existing:
            continue
        db.add(
            PermissionCatalog(
                code=code,
                module=module,
                action=action,
                resource=module,
                description=description,
                is_dangerous=is_dangerous,
            )
        )


def _get_or_create_roles(db):
    existing = {
        role.code: role for role in db.execute(select(Role).where(Role.tenant_id.is_(None))).scalars().all()
    }
    for code, (name, description, priority, _codes) in DEFAULT_ROLES.items():
        if code in existing:
            continue
        role = Role(code=code, name=name, description=description, priority=priority, is_system=True)
        db.add(role)
        existing[code] = role
    db.flush()
    return existing


def _assign_role_permissions(db, roles):
    permissions = {perm.code: perm for perm in db.execute(select(PermissionCatalog)).scalars().all()}
    existing_pairs = {
        (row.role_id, row.permission_id) for row in db.execute(select(RolePermission)).scalars().all()
    }
    for role_code, (_name, _description, _priority, codes) in DEFAULT_ROLES.items():
        role = roles[role_code]
        for code in codes:
            permission = permissions.get(code)
            if permission is None or (role.id, permission.id) in existing_pairs:
                continue
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))


def _assign_module_access(db, roles, modules):
    existing_pairs = {
        (row.role_id, row.module_id) for row in db.execute(select(RoleModuleAccess)).scalars().all()
    }
    grants = [(roles[SUPER_ADMIN_ROLE], module, "all") for module in modules.values()]
    grants.append((roles[USER_ROLE], modules["notes"], "own"))
    for role, module, data_access in grants:
        if (role.id, module.id) in existing_pairs:
            continue
        db.add(RoleModuleAccess(role_id=role.id, module_id=module.id, has_access=True, data_access=data_access))


def _get_or_create_superadmin(db, tenant, role):
    user = db.execute(select(User).where(User.username == settings.SUPERADMIN_USERNAME)).scalars().first()
    if user:
        return user
    user = User(
        tenant_id=tenant.id,
        role_id=role.id,
        username=settings.SUPERADMIN_USERNAME,
        email=settings.SUPERADMIN_EMAIL,
        status="active",
        is_active=True,
    )
    db.add(user)
    return user


def run_seed(db):
    tenant = _get_or_create_tenant(db)
    modules = _get_or_create_modules(db)
    _get_or_create_permissions(db)
    roles = _get_or_create_roles(db)
    db.flush()
    _assign_role_permissions(db, roles)
    _assign_module_access(db, roles, modules)
    _get_or_create_superadmin(db, tenant, roles[SUPER_ADMIN_ROLE])
    db.commit()
