from sqlalchemy import delete, or_, select

from app.adminhub.db.models import (
    Module,
    ModuleField,
    PermissionCatalog,
    Role,
    RoleFieldPermission,
    RoleModuleAccess,
    RolePermission,
    coerce_uuid,
)


def _tenant_clause(column, tenant_id):
    if tenant_id is None:
        return column.is_(None)
    return column == tenant_id


class RoleGrantRepository:
    """Storage for roles' module grants, field grants and legacy flat grants.

    Every grant query takes ``tenant_id`` and ``scoped``: when ``scoped`` is false the
    tenant column is not part of the key at all.
    """

    def __init__(self, db):
        self.db = db

    def get_role(self, role_id, *, tenant_id=None, scoped: bool = False, for_update: bool = False):
        role_uuid = coerce_uuid(role_id)
        if role_uuid is None:
            return None
        stmt = select(Role).where(Role.id == role_uuid, Role.deleted_at.is_(None))
        if scoped:
            # Global roles (no tenant) are visible from every tenant.
            stmt = stmt.where(or_(Role.tenant_id.is_(None), Role.tenant_id == coerce_uuid(tenant_id)))
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalars().first()

    def list_active_modules(self):
        stmt = select(Module).where(Module.is_active.is_(True)).order_by(Module.sort_order, Module.code)
        return self.db.execute(stmt).scalars().all()

    def get_module_by_code(self, module_code: str):
        stmt = select(Module).where(Module.code == module_code.lower(), Module.is_active.is_(True))
        return self.db.execute(stmt).scalars().first()

    def get_modules_by_ids(self, module_ids) -> dict:
        if not module_ids:
            return {}
        stmt = select(Module).where(Module.id.in_(list(module_ids)))
        return {module.id: module for module in self.db.execute(stmt).scalars().all()}

    def get_fields_by_ids(self, field_ids) -> dict:
        if not field_ids:
            return {}
        stmt = select(ModuleField).where(ModuleField.id.in_(list(field_ids)))
        return {field.id: field for field in self.db.execute(stmt).scalars().all()}

    def get_field_by_code(self, module_id, field_code: str):
        stmt = select(ModuleField).where(
            ModuleField.module_id == module_id,
            ModuleField.code == field_code,
            ModuleField.is_active.is_(True),
        )
        return self.db.execute(stmt).scalars().first()

    def list_active_fields(self):
        stmt = (
            select(ModuleField)
            .where(ModuleField.is_active.is_(True))
            .order_by(ModuleField.sort_order, ModuleField.code)
        )
        return self.db.execute(stmt).scalars().all()

    def list_permission_catalog(self):
        stmt = select(PermissionCatalog).where(PermissionCatalog.is_active.is_(True)).order_by(PermissionCatalog.code)
        return self.db.execute(stmt).scalars().all()

    def existing_permission_ids(self, permission_ids) -> set:
        if not permission_ids:
            return set()
        stmt = select(PermissionCatalog.id).where(PermissionCatalog.id.in_(list(permission_ids)))
        return {row[0] for row in self.db.execute(stmt).all()}

    def list_module_grants(self, role_id, *, tenant_id=None, scoped: bool = False):
        stmt = select(RoleModuleAccess).where(RoleModuleAccess.role_id == role_id)
        if scoped:
            stmt = stmt.where(_tenant_clause(RoleModuleAccess.tenant_id, tenant_id))
        return self.db.execute(stmt).scalars().all()

    def get_module_grant(self, role_id, module_id, *, tenant_id=None, scoped: bool = False):
        stmt = select(RoleModuleAccess).where(
            RoleModuleAccess.role_id == role_id,
            RoleModuleAccess.module_id == module_id,
        )
        if scoped:
            stmt = stmt.where(_tenant_clause(RoleModuleAccess.tenant_id, tenant_id))
        return self.db.execute(stmt).scalars().first()

    def list_field_grants(self, role_id, *, module_id=None, tenant_id=None, scoped: bool = False):
        stmt = select(RoleFieldPermission).where(RoleFieldPermission.role_id == role_id)
        if module_id is not None:
            stmt = stmt.where(RoleFieldPermission.module_id == module_id)
        if scoped:
            stmt = stmt.where(_tenant_clause(RoleFieldPermission.tenant_id, tenant_id))
        return self.db.execute(stmt).scalars().all()

    def get_field_grant(self, role_id, module_id, field_id, *, tenant_id=None, scoped: bool = False):
        stmt = select(RoleFieldPermission).where(
            RoleFieldPermission.role_id == role_id,
            RoleFieldPermission.module_id == module_id,
            RoleFieldPermission.field_id == field_id,
        )
        if scoped:
            stmt = stmt.where(_tenant_clause(RoleFieldPermission.tenant_id, tenant_id))
        return self.db.execute(stmt).scalars().first()

    def _delete_role_rows(self, model, role_id) -> None:
        # Matched rows leave the identity map, so the same keys can be added again.
        stmt = delete(model).where(model.role_id == role_id).execution_options(synchronize_session="fetch")
        self.db.execute(stmt)

    def replace_module_tree(self, role_id, *, module_grants: list, field_grants: list) -> None:
        self._delete_role_rows(RoleFieldPermission, role_id)
        self._delete_role_rows(RoleModuleAccess, role_id)
        self.db.add_all(module_grants)
        self.db.add_all(field_grants)
        self.db.flush()

    def list_legacy_permission_ids(self, role_id) -> set:
        stmt = select(RolePermission.permission_id).where(RolePermission.role_id == role_id)
        return {row[0] for row in self.db.execute(stmt).all()}

    def list_legacy_permission_codes(self, role_id, *, tenant_id=None, scoped: bool = False) -> list[str]:
        stmt = (
            select(PermissionCatalog.code)
            .join(RolePermission, RolePermission.permission_id == PermissionCatalog.id)
            .where(RolePermission.role_id == role_id, PermissionCatalog.is_active.is_(True))
        )
        if scoped:
            stmt = stmt.where(_tenant_clause(RolePermission.tenant_id, tenant_id))
        return [row[0] for row in self.db.execute(stmt).all()]

    def delete_legacy_grants(self, role_id) -> None:
        self._delete_role_rows(RolePermission, role_id)

    def insert_legacy_grants(self, role_id, permission_ids, *, tenant_id=None) -> None:
        if not permission_ids:
            return
        for permission_id in sorted(permission_ids, key=str):
            self.db.add(RolePermission(role_id=role_id, permission_id=permission_id, tenant_id=tenant_id))
        self.db.flush()
