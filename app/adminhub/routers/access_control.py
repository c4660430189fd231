from fastapi import APIRouter, Depends, Query, Request

from app.adminhub.core.context import PrincipalContext, get_trace_id
from app.adminhub.core.deps import get_current_principal, get_permission_resolver
from app.adminhub.schemas.access_control import (
    EffectivePermissionsResponse,
    FieldVisibilityResponse,
    ModuleAccessResponse,
    PermissionCheckResponse,
)
from app.adminhub.services.permission_resolver import PermissionResolver

router = APIRouter()


@router.get("/effective-permissions", response_model=EffectivePermissionsResponse)
def effective_permissions(
    request: Request,
    principal: PrincipalContext = Depends(get_current_principal),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    return EffectivePermissionsResponse(
        user_id=str(principal.user_id),
        tenant_id=str(principal.tenant_id) if principal.tenant_id else None,
        role_id=str(principal.role_id) if principal.role_id else None,
        permissions=resolver.effective_permissions(principal),
        trace_id=get_trace_id(request),
    )


@router.get("/check", response_model=PermissionCheckResponse)
def check_permission(
    request: Request,
    code: str = Query(..., min_length=1, max_length=150),
    principal: PrincipalContext = Depends(get_current_principal),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    return PermissionCheckResponse(
        code=code,
        allowed=resolver.has_permission(principal, code),
        trace_id=get_trace_id(request),
    )


@router.get("/modules/{module_code}", response_model=ModuleAccessResponse)
def module_access(
    request: Request,
    module_code: str,
    principal: PrincipalContext = Depends(get_current_principal),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    decision = resolver.module_access(principal, module_code)
    return ModuleAccessResponse(
        module=decision.module,
        has_access=decision.has_access,
        data_access=decision.data_access,
        visible_fields=decision.visible_fields,
        editable_fields=decision.editable_fields,
        trace_id=get_trace_id(request),
    )


@router.get("/modules/{module_code}/fields/{field_code}", response_model=FieldVisibilityResponse)
def field_visibility(
    request: Request,
    module_code: str,
    field_code: str,
    principal: PrincipalContext = Depends(get_current_principal),
    resolver: PermissionResolver = Depends(get_permission_resolver),
):
    decision = resolver.field_visibility(principal, module_code, field_code)
    return FieldVisibilityResponse(
        module=module_code,
        field=field_code,
        visible=decision.visible,
        editable=decision.editable,
        trace_id=get_trace_id(request),
    )
