from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from app.adminhub.core.context import PrincipalContext, build_principal_context
from app.adminhub.core.tenancy import TenantScopeGuard
from app.adminhub.db.models import DATA_ACCESS_LEVELS
from app.adminhub.repos.grants import RoleGrantRepository
from app.adminhub.repos.users import UserRepository


ADMIN_WILDCARD = "admin:*"
NO_DATA_ACCESS = "none"


@dataclass(frozen=True)
class FieldVisibility:
    visible: bool
    editable: bool


@dataclass(frozen=True)
class ModuleAccessDecision:
    module: str
    has_access: bool
    data_access: str
    visible_fields: list[str]
    editable_fields: list[str]


DENIED_FIELD = FieldVisibility(visible=False, editable=False)


def permission_module(code: str) -> str:
    return code.split(":", 1)[0]


def matches_permission(granted: Iterable[str], code: str) -> bool:
    """Exact code, then ``<module>:*``, then ``admin:*``. Nothing else matches."""
    codes = granted if isinstance(granted, (set, frozenset)) else set(granted)
    if code in codes:
        return True
    if f"{permission_module(code)}:*" in codes:
        return True
    return ADMIN_WILDCARD in codes


class PermissionResolver:
    """Read-only answers to "what may this principal do".

    Missing rows always mean deny. Store errors are not caught here: the caller
    has to fail closed.
    """

    def __init__(self, db, tenant_scope: TenantScopeGuard, cache: dict | None = None):
        self.repo = RoleGrantRepository(db)
        self.users = UserRepository(db)
        self.tenant_scope = tenant_scope
        self.cache = cache if cache is not None else {}

    def resolve_principal(self, user_id, *, trace_id: str = "") -> PrincipalContext | None:
        user = self.users.get_active_by_id(user_id)
        if user is None:
            return None
        return build_principal_context(
            user_id=user.id,
            tenant_id=self.tenant_scope.tenant_key(user.tenant_id),
            role_id=user.role_id,
            trace_id=trace_id,
            username=user.username,
        )

    def has_permission(self, principal: PrincipalContext, code: str) -> bool:
        normalized = (code or "").strip()
        if not normalized:
            return False
        return matches_permission(self._flat_codes(principal), normalized)

    def has_any_permission(self, principal: PrincipalContext, codes: Iterable[str]) -> bool:
        return any(self.has_permission(principal, code) for code in codes)

    def has_all_permissions(self, principal: PrincipalContext, codes: Iterable[str]) -> bool:
        return all(self.has_permission(principal, code) for code in codes)

    def effective_permissions(self, principal: PrincipalContext) -> list[str]:
        return sorted(self._flat_codes(principal))

    def data_access_for(self, principal: PrincipalContext, module_code: str) -> str:
        role = self._visible_role(principal)
        if role is None:
            return NO_DATA_ACCESS
        module = self.repo.get_module_by_code(module_code)
        if module is None:
            return NO_DATA_ACCESS
        grant = self.repo.get_module_grant(role.id, module.id, **self._grant_key(role))
        if grant is None or not grant.has_access or grant.data_access not in DATA_ACCESS_LEVELS:
            return NO_DATA_ACCESS
        return grant.data_access

    def field_visibility(self, principal: PrincipalContext, module_code: str, field_code: str) -> FieldVisibility:
        role = self._visible_role(principal)
        if role is None:
            return DENIED_FIELD
        module = self.repo.get_module_by_code(module_code)
        if module is None:
            return DENIED_FIELD
        field = self.repo.get_field_by_code(module.id, field_code)
        if field is None:
            return DENIED_FIELD
        grant = self.repo.get_field_grant(role.id, module.id, field.id, **self._grant_key(role))
        if grant is None:
            return DENIED_FIELD
        visible = bool(grant.is_visible)
        return FieldVisibility(visible=visible, editable=visible and bool(grant.is_editable))

    def module_access(self, principal: PrincipalContext, module_code: str) -> ModuleAccessDecision:
        denied = ModuleAccessDecision(
            module=module_code,
            has_access=False,
            data_access=NO_DATA_ACCESS,
            visible_fields=[],
            editable_fields=[],
        )
        role = self._visible_role(principal)
        if role is None:
            return denied
        module = self.repo.get_module_by_code(module_code)
        if module is None:
            return denied
        key = self._grant_key(role)
        grant = self.repo.get_module_grant(role.id, module.id, **key)
        if grant is None or not grant.has_access:
            return denied

        field_grants = self.repo.list_field_grants(role.id, module_id=module.id, **key)
        fields = self.repo.get_fields_by_ids({row.field_id for row in field_grants})
        visible: list[str] = []
        editable: list[str] = []
        for row in field_grants:
            field = fields.get(row.field_id)
            if field is None or not field.is_active or not row.is_visible:
                continue
            visible.append(field.code)
            if row.is_editable:
                editable.append(field.code)
        data_access = grant.data_access if grant.data_access in DATA_ACCESS_LEVELS else NO_DATA_ACCESS
        return ModuleAccessDecision(
            module=module.code,
            has_access=True,
            data_access=data_access,
            visible_fields=sorted(visible),
            editable_fields=sorted(editable),
        )

    def can_manage_role(self, principal: PrincipalContext, role) -> bool:
        """Whether ``principal`` may change ``role`` itself, beyond reading it.

        With tenant scoping on, a global role is shared by every tenant, so only
        ``admin:*`` holders may change it. Roles of another tenant are never writable.
        """
        if not self.tenant_scope.enabled or principal.tenant_id is None:
            return True
        if role.tenant_id == principal.tenant_id:
            return True
        if role.tenant_id is None:
            return self.has_permission(principal, ADMIN_WILDCARD)
        return False

    def _visible_role(self, principal: PrincipalContext):
        if principal is None or principal.role_id is None:
            return None
        cache_key = f"role:{principal.tenant_id}:{principal.role_id}"
        if cache_key in self.cache:
            return self.cache[cache_key]
        role = self.repo.get_role(
            principal.role_id,
            tenant_id=principal.tenant_id,
            scoped=self.tenant_scope.enabled,
        )
        if role is not None and role.status != "active":
            role = None
        self.cache[cache_key] = role
        return role

    def _grant_key(self, role) -> dict:
        return {"tenant_id": role.tenant_id, "scoped": self.tenant_scope.enabled}

    def _flat_codes(self, principal: PrincipalContext) -> frozenset[str]:
        role = self._visible_role(principal)
        if role is None:
            return frozenset()
        cache_key = f"flat_codes:{principal.tenant_id}:{role.id}"
        if cache_key in self.cache:
            return self.cache[cache_key]
        codes = frozenset(self.repo.list_legacy_permission_codes(role.id, **self._grant_key(role)))
        self.cache[cache_key] = codes
        return codes
