from typing import Literal

from pydantic import BaseModel, Field


DataAccessLevel = Literal["none", "own", "team", "all"]


class EffectivePermissionsResponse(BaseModel):
    user_id: str
    tenant_id: str | None = Field(default=None, description="None when tenant scoping is disabled.")
    role_id: str | None = None
    permissions: list[str] = Field(..., description="Flat permission codes held through the role, wildcards included.")
    trace_id: str


class PermissionCheckResponse(BaseModel):
    code: str
    allowed: bool
    trace_id: str


class ModuleAccessResponse(BaseModel):
    module: str
    has_access: bool
    data_access: DataAccessLevel = Field(..., description="Record scope; interpreted by the owning CRUD module.")
    visible_fields: list[str]
    editable_fields: list[str]
    trace_id: str


class FieldVisibilityResponse(BaseModel):
    module: str
    field: str
    visible: bool
    editable: bool
    trace_id: str
