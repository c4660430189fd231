from __future__ import annotations

from app.adminhub.core.config import Settings, settings


class TenantScopeMutationError(RuntimeError):
    """Raised when code tries to flip tenant scoping on a running process."""


class TenantScopeGuard:
    """Process-wide switch deciding whether tenant identity keys permission lookups.

    Built once from settings and handed to resolvers and writers explicitly. The
    value is fixed for the lifetime of the instance; changing it is a deployment
    change (schema migration plus restart), never a runtime toggle.
    """

    __slots__ = ("_enabled",)

    def __init__(self, enabled: bool):
        object.__setattr__(self, "_enabled", bool(enabled))

    @classmethod
    def from_settings(cls, source: Settings) -> "TenantScopeGuard":
        return cls(source.MULTI_TENANT_ENABLED)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def tenant_key(self, tenant_id):
        """Tenant id to use in a lookup key, or None when scoping is off."""
        if not self._enabled:
            return None
        return tenant_id

    def __setattr__(self, name, value):
        raise TenantScopeMutationError(
            "Tenant scoping is fixed at process start; restart with a migrated schema to change it"
        )

    def __delattr__(self, name):
        raise TenantScopeMutationError("Tenant scoping is fixed at process start")

    def __repr__(self) -> str:
        return f"TenantScopeGuard(enabled={self._enabled})"


tenant_scope = TenantScopeGuard.from_settings(settings)


def get_tenant_scope() -> TenantScopeGuard:
    return tenant_scope
