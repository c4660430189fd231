from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


RoleStatus = Literal["active", "inactive"]


def _list_or_empty(value):
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, dict)]


def _str_or_none(value):
    return value if isinstance(value, str) else None


def _bool_or_none(value):
    return value if isinstance(value, bool) else None


def _bool_or_false(value):
    return value is True


class _GrantInput(BaseModel):
    # Accepts both snake_case and the camelCase keys of the settings UI.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PermissionFlagInput(_GrantInput):
    permission_id: str | None = Field(default=None, description="Catalog permission id.")
    granted: bool = Field(default=False, description="Whether the role holds this permission.")

    @field_validator("permission_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return _str_or_none(value)

    @field_validator("granted", mode="before")
    @classmethod
    def _coerce_granted(cls, value):
        return _bool_or_false(value)


class FieldFlagInput(_GrantInput):
    field_id: str | None = Field(default=None, description="Module field id.")
    is_visible: bool = False
    is_editable: bool = Field(default=False, description="Ignored unless the field is visible.")

    @field_validator("field_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return _str_or_none(value)

    @field_validator("is_visible", "is_editable", mode="before")
    @classmethod
    def _coerce_flags(cls, value):
        return _bool_or_false(value)


class ModuleGrantInput(_GrantInput):
    module_id: str | None = Field(default=None, description="Entries without a module id are skipped.")
    has_access: bool | None = Field(
        default=None,
        description="Defaults to true when any permission in this module is granted.",
    )
    data_access: str | None = Field(
        default=None,
        description="One of none/own/team/all; anything else falls back to the default scope.",
    )
    permissions: list[PermissionFlagInput] = Field(default_factory=list)
    fields: list[FieldFlagInput] = Field(default_factory=list)

    @field_validator("permissions", "fields", mode="before")
    @classmethod
    def _coerce_lists(cls, value):
        return _list_or_empty(value)

    @field_validator("module_id", "data_access", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _str_or_none(value)

    @field_validator("has_access", mode="before")
    @classmethod
    def _coerce_has_access(cls, value):
        return _bool_or_none(value)


class RoleGrantsRequest(_GrantInput):
    module_grants: list[ModuleGrantInput] = Field(
        default_factory=list,
        description="Complete grant tree of the role; modules left out lose their grants.",
    )
    legacy_permission_ids: list[str] | None = Field(
        default=None,
        description="Extra permission ids kept in the flat grant table alongside the projected ones.",
    )

    @field_validator("module_grants", mode="before")
    @classmethod
    def _coerce_module_grants(cls, value):
        return _list_or_empty(value)

    @field_validator("legacy_permission_ids", mode="before")
    @classmethod
    def _coerce_legacy_ids(cls, value):
        if value is None:
            return None
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item) for item in value if item is not None]


class PermissionGrantItem(BaseModel):
    permission_id: str
    code: str
    action: str
    description: str | None = None
    is_dangerous: bool
    requires_mfa: bool
    granted: bool


class FieldGrantItem(BaseModel):
    field_id: str
    code: str
    name: str
    label: str
    is_visible: bool
    is_editable: bool


class ModuleGrantItem(BaseModel):
    module_id: str
    code: str
    name: str
    icon: str | None = None
    has_access: bool
    data_access: Literal["none", "own", "team", "all"]
    permissions: list[PermissionGrantItem]
    fields: list[FieldGrantItem]


class RoleGrantsResponse(BaseModel):
    role_id: str
    role_code: str
    modules: list[ModuleGrantItem]
    trace_id: str


class ApplyRoleGrantsResponse(BaseModel):
    role_id: str
    trace_id: str


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=100, description="Stored upper-cased.")
    description: str | None = None
    priority: int = Field(default=0, description="Higher wins when scopes conflict.")
    status: RoleStatus = "active"


class RoleUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    code: str | None = Field(default=None, min_length=1, max_length=100, description="Rejected for system roles.")
    description: str | None = None
    priority: int | None = None
    status: RoleStatus | None = None


class RoleItem(BaseModel):
    id: str
    tenant_id: str | None = None
    code: str
    name: str
    description: str | None = None
    priority: int
    is_system: bool
    status: RoleStatus
    user_count: int | None = None


class RoleResponse(BaseModel):
    role: RoleItem
    trace_id: str


class RoleListResponse(BaseModel):
    roles: list[RoleItem]
    total: int
    trace_id: str
