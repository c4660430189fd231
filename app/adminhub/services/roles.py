from __future__ import annotations

from datetime import datetime

from app.adminhub.core.context import PrincipalContext
from app.adminhub.core.error_catalog import AppError, ErrorCatalog
from app.adminhub.core.metrics import metrics
from app.adminhub.core.tenancy import TenantScopeGuard
from app.adminhub.db.models import Role
from app.adminhub.repos.roles import RoleRepository
from app.adminhub.services.permission_resolver import PermissionResolver


def role_snapshot(role: Role) -> dict:
    return {
        "code": role.code,
        "name": role.name,
        "description": role.description,
        "priority": role.priority,
        "status": role.status,
        "is_system": role.is_system,
    }


class RoleService:
    def __init__(self, db, tenant_scope: TenantScopeGuard, cache: dict | None = None):
        self.db = db
        self.repo = RoleRepository(db)
        self.tenant_scope = tenant_scope
        self.resolver = PermissionResolver(db, tenant_scope, cache=cache)

    def list_roles(
        self,
        *,
        actor: PrincipalContext,
        search: str | None = None,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ):
        self._require(actor, "roles:read")
        return self.repo.list_roles(
            tenant_id=actor.tenant_id,
            scoped=self.tenant_scope.enabled,
            search=search,
            status=status,
            limit=limit,
            offset=offset,
        )

    def get_role(self, role_id, *, actor: PrincipalContext) -> tuple[Role, int]:
        self._require(actor, "roles:read")
        role = self._get_visible(role_id, actor)
        return role, self.repo.count_users(role.id)

    def create_role(
        self,
        *,
        actor: PrincipalContext,
        name: str,
        code: str,
        description: str | None = None,
        priority: int = 0,
        status: str = "active",
    ) -> Role:
        self._require(actor, "roles:create")
        tenant_id = self.tenant_scope.tenant_key(actor.tenant_id)
        normalized_code = code.strip().upper()
        if self.repo.get_by_code(normalized_code, tenant_id=tenant_id) is not None:
            raise AppError(ErrorCatalog.ROLE_CODE_CONFLICT, details={"code": normalized_code})
        role = Role(
            tenant_id=tenant_id,
            code=normalized_code,
            name=name,
            description=description or None,
            priority=priority,
            is_system=False,
            status=status,
            created_by=actor.user_id,
            updated_by=actor.user_id,
        )
        self.repo.add(role)
        self.db.commit()
        self.db.refresh(role)
        return role

    def update_role(self, role_id, changes: dict, *, actor: PrincipalContext) -> tuple[dict, Role]:
        self._require(actor, "roles:update")
        role = self._get_manageable(role_id, actor)
        before = role_snapshot(role)

        if "code" in changes and changes["code"] is not None:
            new_code = changes["code"].strip().upper()
            if new_code != role.code:
                if role.is_system:
                    raise AppError(ErrorCatalog.SYSTEM_ROLE_PROTECTED, details={"role_id": str(role.id)})
                if self.repo.get_by_code(new_code, tenant_id=role.tenant_id) is not None:
                    raise AppError(ErrorCatalog.ROLE_CODE_CONFLICT, details={"code": new_code})
                role.code = new_code
        if changes.get("name") is not None:
            role.name = changes["name"]
        if "description" in changes:
            role.description = changes["description"] or None
        if changes.get("priority") is not None:
            role.priority = changes["priority"]
        if changes.get("status") is not None:
            role.status = changes["status"]
        role.updated_by = actor.user_id
        role.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(role)
        return before, role

    def delete_role(self, role_id, *, actor: PrincipalContext) -> Role:
        self._require(actor, "roles:delete")
        role = self._get_manageable(role_id, actor)
        if role.is_system:
            raise AppError(ErrorCatalog.SYSTEM_ROLE_PROTECTED, details={"role_id": str(role.id)})
        user_count = self.repo.count_users(role.id)
        if user_count > 0:
            raise AppError(ErrorCatalog.ROLE_IN_USE, details={"role_id": str(role.id), "user_count": user_count})
        now = datetime.utcnow()
        role.deleted_at = now
        role.updated_at = now
        role.updated_by = actor.user_id
        self.db.commit()
        return role

    def _get_visible(self, role_id, actor: PrincipalContext) -> Role:
        role = self.repo.get_by_id(role_id, tenant_id=actor.tenant_id, scoped=self.tenant_scope.enabled)
        if role is None:
            raise AppError(ErrorCatalog.ROLE_NOT_FOUND, details={"role_id": str(role_id)})
        return role

    def _get_manageable(self, role_id, actor: PrincipalContext) -> Role:
        role = self._get_visible(role_id, actor)
        if not self.resolver.can_manage_role(actor, role):
            metrics.increment_rbac_denied()
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required": "admin:*", "role_id": str(role.id)})
        return role

    def _require(self, actor: PrincipalContext, code: str) -> None:
        if not self.resolver.has_permission(actor, code):
            metrics.increment_rbac_denied()
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required": code})
