from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from app.adminhub.core.context import PrincipalContext
from app.adminhub.core.error_catalog import AppError, ErrorCatalog
from app.adminhub.core.logging import log_json
from app.adminhub.core.metrics import metrics
from app.adminhub.core.tenancy import TenantScopeGuard
from app.adminhub.db.models import RoleFieldPermission, RoleModuleAccess
from app.adminhub.repos.grants import RoleGrantRepository
from app.adminhub.services.grant_projection import (
    NormalizedModuleGrant,
    normalize_module_grants,
    normalize_permission_ids,
    project_legacy_permission_ids,
)
from app.adminhub.services.permission_resolver import ADMIN_WILDCARD, PermissionResolver

logger = logging.getLogger("adminhub.rbac")

ROLES_READ = "roles:read"
ROLES_UPDATE = "roles:update"
SUPER_ADMIN_CODE = "SUPER_ADMIN"
# Every user may read and edit their own profile, so it never appears in a grant tree.
EXCLUDED_MODULE_CODES = {"profile"}


@dataclass(frozen=True)
class GrantSnapshot:
    modules: dict[str, dict]
    permission_ids: list[str]

    def as_dict(self) -> dict:
        return {"modules": self.modules, "permission_ids": self.permission_ids}


@dataclass
class PermissionGrantView:
    permission_id: str
    code: str
    action: str
    description: str | None
    is_dangerous: bool
    requires_mfa: bool
    granted: bool


@dataclass
class FieldGrantView:
    field_id: str
    code: str
    name: str
    label: str
    is_visible: bool
    is_editable: bool


@dataclass
class ModuleGrantView:
    module_id: str
    code: str
    name: str
    icon: str | None
    has_access: bool
    data_access: str
    permissions: list[PermissionGrantView] = field(default_factory=list)
    fields: list[FieldGrantView] = field(default_factory=list)


@dataclass
class RoleGrantTree:
    role_id: str
    role_code: str
    modules: list[ModuleGrantView]


class GrantWriter:
    """Keeps a role's grant tree and its legacy flat projection in step.

    ``apply_role_grants`` replaces the module grants, the field grants and the flat
    ``role_permissions`` rows of one role inside a single transaction. The role row
    is locked first, so two writers of the same role run one after the other.
    """

    def __init__(self, db, tenant_scope: TenantScopeGuard, cache: dict | None = None):
        self.db = db
        self.repo = RoleGrantRepository(db)
        self.tenant_scope = tenant_scope
        self.resolver = PermissionResolver(db, tenant_scope, cache=cache)

    def apply_role_grants(
        self,
        role_id,
        module_grants,
        legacy_permission_ids=None,
        *,
        actor: PrincipalContext,
    ) -> tuple[GrantSnapshot, GrantSnapshot]:
        self._require(actor, ROLES_UPDATE)
        if role_id is None or (isinstance(role_id, str) and not role_id.strip()):
            raise AppError(ErrorCatalog.ROLE_ID_REQUIRED)

        normalized = normalize_module_grants(module_grants)
        override_ids = normalize_permission_ids(legacy_permission_ids)

        try:
            role = self.repo.get_role(
                role_id,
                tenant_id=actor.tenant_id,
                scoped=self.tenant_scope.enabled,
                for_update=True,
            )
            if role is None:
                raise AppError(ErrorCatalog.ROLE_NOT_FOUND, details={"role_id": str(role_id)})
            self._require_manageable(actor, role)
            self._validate_references(normalized)
            before = self._snapshot(role.id)
            tenant_key = self.tenant_scope.tenant_key(role.tenant_id)

            module_rows, field_rows = self._build_rows(role.id, normalized, actor, tenant_key)
            self.repo.replace_module_tree(role.id, module_grants=module_rows, field_grants=field_rows)

            candidate_ids = project_legacy_permission_ids(normalized)
            final_ids = self.repo.existing_permission_ids(override_ids | candidate_ids)

            self.repo.delete_legacy_grants(role.id)
            self.repo.insert_legacy_grants(role.id, final_ids, tenant_id=tenant_key)
            after = self._snapshot(role.id)
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except Exception as exc:
            self.db.rollback()
            metrics.record_grant_write("failure")
            log_json(
                logger,
                {
                    "event": "rbac.grants.failed",
                    "role_id": str(role_id),
                    "actor_id": str(actor.user_id),
                    "trace_id": actor.trace_id,
                    "error_class": exc.__class__.__name__,
                },
                level=logging.ERROR,
            )
            raise

        metrics.record_grant_write("success")
        log_json(
            logger,
            {
                "event": "rbac.grants.applied",
                "role_id": str(role_id),
                "actor_id": str(actor.user_id),
                "trace_id": actor.trace_id,
                "modules": len(normalized),
                "legacy_permissions": len(after.permission_ids),
            },
        )
        return before, after

    def get_role_grants(self, role_id, *, actor: PrincipalContext) -> RoleGrantTree:
        self._require(actor, ROLES_READ)
        role = self.repo.get_role(role_id, tenant_id=actor.tenant_id, scoped=self.tenant_scope.enabled)
        if role is None:
            raise AppError(ErrorCatalog.ROLE_NOT_FOUND, details={"role_id": str(role_id)})

        key = {"tenant_id": role.tenant_id, "scoped": self.tenant_scope.enabled}
        is_super_admin = role.code == SUPER_ADMIN_CODE and role.is_system and role.tenant_id is None
        module_grants = {row.module_id: row for row in self.repo.list_module_grants(role.id, **key)}
        field_grants = {row.field_id: row for row in self.repo.list_field_grants(role.id, **key)}
        granted_ids = self.repo.list_legacy_permission_ids(role.id)

        catalog_by_module = defaultdict(list)
        for permission in self.repo.list_permission_catalog():
            catalog_by_module[permission.module].append(permission)
        fields_by_module = defaultdict(list)
        for module_field in self.repo.list_active_fields():
            fields_by_module[module_field.module_id].append(module_field)

        views = []
        for module in self.repo.list_active_modules():
            if module.code.lower() in EXCLUDED_MODULE_CODES:
                continue
            grant = module_grants.get(module.id)
            if is_super_admin:
                has_access, data_access = True, "all"
            elif grant is not None:
                has_access, data_access = grant.has_access, grant.data_access
            else:
                has_access, data_access = False, "none"
            view = ModuleGrantView(
                module_id=str(module.id),
                code=module.code,
                name=module.name,
                icon=module.icon,
                has_access=has_access,
                data_access=data_access if has_access else "none",
            )
            for permission in catalog_by_module.get(module.code.lower(), []):
                view.permissions.append(
                    PermissionGrantView(
                        permission_id=str(permission.id),
                        code=permission.code,
                        action=permission.action,
                        description=permission.description,
                        is_dangerous=permission.is_dangerous,
                        requires_mfa=permission.requires_mfa,
                        granted=is_super_admin or permission.id in granted_ids,
                    )
                )
            for module_field in fields_by_module.get(module.id, []):
                row = field_grants.get(module_field.id)
                visible = is_super_admin or bool(row is not None and row.is_visible)
                view.fields.append(
                    FieldGrantView(
                        field_id=str(module_field.id),
                        code=module_field.code,
                        name=module_field.name,
                        label=module_field.label or module_field.name,
                        is_visible=visible,
                        is_editable=visible and (is_super_admin or bool(row is not None and row.is_editable)),
                    )
                )
            views.append(view)
        return RoleGrantTree(role_id=str(role.id), role_code=role.code, modules=views)

    def _require(self, actor: PrincipalContext, code: str) -> None:
        if actor is None or not self.resolver.has_permission(actor, code):
            metrics.increment_rbac_denied()
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required": code})

    def _require_manageable(self, actor: PrincipalContext, role) -> None:
        if not self.resolver.can_manage_role(actor, role):
            metrics.increment_rbac_denied()
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required": ADMIN_WILDCARD, "role_id": str(role.id)})

    def _validate_references(self, normalized: list[NormalizedModuleGrant]) -> None:
        module_ids = {grant.module_id for grant in normalized}
        modules = self.repo.get_modules_by_ids(module_ids)
        missing_modules = sorted(str(module_id) for module_id in module_ids if module_id not in modules)
        if missing_modules:
            raise AppError(ErrorCatalog.MODULE_NOT_FOUND, details={"module_ids": missing_modules})

        field_ids = {flags.field_id for grant in normalized for flags in grant.fields}
        fields = self.repo.get_fields_by_ids(field_ids)
        mismatched = sorted(
            str(flags.field_id)
            for grant in normalized
            for flags in grant.fields
            if flags.field_id not in fields or fields[flags.field_id].module_id != grant.module_id
        )
        if mismatched:
            raise AppError(ErrorCatalog.FIELD_NOT_FOUND, details={"field_ids": mismatched})

    @staticmethod
    def _build_rows(role_id, normalized: list[NormalizedModuleGrant], actor: PrincipalContext, tenant_key):
        module_rows = []
        field_rows = []
        for grant in normalized:
            module_rows.append(
                RoleModuleAccess(
                    role_id=role_id,
                    module_id=grant.module_id,
                    tenant_id=tenant_key,
                    has_access=grant.has_access,
                    data_access=grant.data_access,
                    updated_by=actor.user_id,
                )
            )
            for flags in grant.fields:
                field_rows.append(
                    RoleFieldPermission(
                        role_id=role_id,
                        module_id=grant.module_id,
                        field_id=flags.field_id,
                        tenant_id=tenant_key,
                        is_visible=flags.is_visible,
                        is_editable=flags.is_editable,
                        updated_by=actor.user_id,
                    )
                )
        return module_rows, field_rows

    def _snapshot(self, role_id) -> GrantSnapshot:
        modules = {
            str(row.module_id): {"has_access": row.has_access, "data_access": row.data_access}
            for row in self.repo.list_module_grants(role_id)
        }
        permission_ids = sorted(str(permission_id) for permission_id in self.repo.list_legacy_permission_ids(role_id))
        return GrantSnapshot(modules=modules, permission_ids=permission_ids)
