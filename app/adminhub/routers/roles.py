from fastapi import APIRouter, Depends, Query, Request

from app.adminhub.core.context import PrincipalContext, get_trace_id
from app.adminhub.core.deps import get_current_principal, get_permission_cache
from app.adminhub.core.tenancy import TenantScopeGuard, get_tenant_scope
from app.adminhub.db.session import get_db
from app.adminhub.schemas.roles import (
    ApplyRoleGrantsResponse,
    FieldGrantItem,
    ModuleGrantItem,
    PermissionGrantItem,
    RoleCreateRequest,
    RoleGrantsRequest,
    RoleGrantsResponse,
    RoleItem,
    RoleListResponse,
    RoleResponse,
    RoleStatus,
    RoleUpdateRequest,
)
from app.adminhub.services.audit import AuditEventPayload, AuditService
from app.adminhub.services.grant_writer import GrantWriter
from app.adminhub.services.roles import RoleService, role_snapshot

router = APIRouter()


def _role_item(role, user_count: int | None = None) -> RoleItem:
    return RoleItem(
        id=str(role.id),
        tenant_id=str(role.tenant_id) if role.tenant_id else None,
        code=role.code,
        name=role.name,
        description=role.description,
        priority=role.priority,
        is_system=role.is_system,
        status=role.status,
        user_count=user_count,
    )


def _audit(db, request: Request, principal: PrincipalContext, *, action: str, role_id: str, before, after, metadata=None):
    AuditService(db).record_event(
        AuditEventPayload(
            tenant_id=str(principal.tenant_id) if principal.tenant_id else None,
            user_id=str(principal.user_id),
            trace_id=get_trace_id(request) or None,
            action=action,
            entity_type="role",
            entity_id=role_id,
            before=before,
            after=after,
            metadata=metadata,
            result="success",
        )
    )


@router.get("/roles", response_model=RoleListResponse)
def list_roles(
    request: Request,
    search: str | None = Query(default=None, max_length=255),
    status: RoleStatus | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    service = RoleService(db, tenant_scope, cache=cache)
    roles, total = service.list_roles(actor=principal, search=search, status=status, limit=limit, offset=offset)
    return RoleListResponse(
        roles=[_role_item(role) for role in roles],
        total=total,
        trace_id=get_trace_id(request),
    )


@router.post("/roles", response_model=RoleResponse, status_code=201)
def create_role(
    request: Request,
    payload: RoleCreateRequest,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    service = RoleService(db, tenant_scope, cache=cache)
    role = service.create_role(actor=principal, **payload.model_dump())
    _audit(db, request, principal, action="roles.create", role_id=str(role.id), before=None, after=role_snapshot(role))
    return RoleResponse(role=_role_item(role, 0), trace_id=get_trace_id(request))


@router.get("/roles/{role_id}", response_model=RoleResponse)
def get_role(
    request: Request,
    role_id: str,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    role, user_count = RoleService(db, tenant_scope, cache=cache).get_role(role_id, actor=principal)
    return RoleResponse(role=_role_item(role, user_count), trace_id=get_trace_id(request))


@router.patch("/roles/{role_id}", response_model=RoleResponse)
def update_role(
    request: Request,
    role_id: str,
    payload: RoleUpdateRequest,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    service = RoleService(db, tenant_scope, cache=cache)
    before, role = service.update_role(role_id, payload.model_dump(exclude_unset=True), actor=principal)
    _audit(db, request, principal, action="roles.update", role_id=str(role.id), before=before, after=role_snapshot(role))
    return RoleResponse(role=_role_item(role), trace_id=get_trace_id(request))


@router.delete("/roles/{role_id}", response_model=RoleResponse)
def delete_role(
    request: Request,
    role_id: str,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    service = RoleService(db, tenant_scope, cache=cache)
    role = service.delete_role(role_id, actor=principal)
    _audit(db, request, principal, action="roles.delete", role_id=str(role.id), before=role_snapshot(role), after=None)
    return RoleResponse(role=_role_item(role, 0), trace_id=get_trace_id(request))


@router.get("/roles/{role_id}/grants", response_model=RoleGrantsResponse)
def get_role_grants(
    request: Request,
    role_id: str,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    tree = GrantWriter(db, tenant_scope, cache=cache).get_role_grants(role_id, actor=principal)
    return RoleGrantsResponse(
        role_id=tree.role_id,
        role_code=tree.role_code,
        modules=[
            ModuleGrantItem(
                module_id=module.module_id,
                code=module.code,
                name=module.name,
                icon=module.icon,
                has_access=module.has_access,
                data_access=module.data_access,
                permissions=[PermissionGrantItem(**vars(item)) for item in module.permissions],
                fields=[FieldGrantItem(**vars(item)) for item in module.fields],
            )
            for module in tree.modules
        ],
        trace_id=get_trace_id(request),
    )


@router.put("/roles/{role_id}/grants", response_model=ApplyRoleGrantsResponse)
def apply_role_grants(
    request: Request,
    role_id: str,
    payload: RoleGrantsRequest,
    principal: PrincipalContext = Depends(get_current_principal),
    tenant_scope: TenantScopeGuard = Depends(get_tenant_scope),
    cache: dict = Depends(get_permission_cache),
    db=Depends(get_db),
):
    writer = GrantWriter(db, tenant_scope, cache=cache)
    before, after = writer.apply_role_grants(
        role_id,
        [entry.model_dump() for entry in payload.module_grants],
        payload.legacy_permission_ids,
        actor=principal,
    )
    _audit(
        db,
        request,
        principal,
        action="roles.grants.update",
        role_id=role_id,
        before=before.as_dict(),
        after=after.as_dict(),
        metadata={"legacy_override": payload.legacy_permission_ids is not None},
    )
    return ApplyRoleGrantsResponse(role_id=role_id, trace_id=get_trace_id(request))
