from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.adminhub.core.context import PrincipalContext, get_trace_id
from app.adminhub.core.error_catalog import AppError, ErrorCatalog
from app.adminhub.core.security import TokenData, decode_token, oauth2_scheme
from app.adminhub.core.tenancy import TenantScopeGuard, get_tenant_scope
from app.adminhub.db.session import get_db
from app.adminhub.services.permission_resolver import PermissionResolver


def get_current_token_data(token: str | None = Depends(oauth2_scheme)) -> TokenData:
    if not token:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_permission_cache(request: Request) -> dict:
    cache = getattr(request.state, "permission_cache", None)
    if cache is None:
        cache = {}
        request.state.permission_cache = cache
    return cache


def get_permission_resolver(
    db=Depends(get_db),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
) -> PermissionResolver:
    return PermissionResolver(db, tenant_scope, cache=cache)


def get_current_principal(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> PrincipalContext:
    principal = resolver.resolve_principal(token_data.sub, trace_id=get_trace_id(request))
    if principal is None:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    request.state.user_id = str(principal.user_id)
    request.state.tenant_id = str(principal.tenant_id) if principal.tenant_id else None
    return principal


__all__ = [
    "get_current_token_data",
    "get_current_principal",
    "get_permission_cache",
    "get_permission_resolver",
]
