"""Normalization of submitted role grant trees and their legacy flat projection.

Both functions are pure: they run before any database work so the defaulting
rules can be exercised without a store.

Rules applied by :func:`normalize_module_grants`:

* a payload that is not a list is treated as an empty list;
* entries without a usable ``module_id`` are skipped (later duplicates win);
* ``has_access`` defaults to "at least one listed permission is granted";
* ``data_access`` defaults to ``team`` with access and ``none`` without; values
  outside ``none/own/team/all`` fall back to that default, and a module without
  access is always ``none``;
* a field is never editable unless it is visible.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from uuid import UUID

from app.adminhub.db.models import DATA_ACCESS_LEVELS, coerce_uuid


DEFAULT_DATA_ACCESS_WITH_ACCESS = "team"
NO_DATA_ACCESS = "none"


@dataclass(frozen=True)
class PermissionFlag:
    permission_id: UUID
    granted: bool


@dataclass(frozen=True)
class FieldFlags:
    field_id: UUID
    is_visible: bool
    is_editable: bool


@dataclass(frozen=True)
class NormalizedModuleGrant:
    module_id: UUID
    has_access: bool
    data_access: str
    permissions: tuple[PermissionFlag, ...]
    fields: tuple[FieldFlags, ...]


def _as_list(value) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _normalize_permissions(raw) -> tuple[PermissionFlag, ...]:
    flags: dict[UUID, PermissionFlag] = {}
    for item in _as_list(raw):
        if not isinstance(item, Mapping):
            continue
        permission_id = coerce_uuid(item.get("permission_id"))
        if permission_id is None:
            continue
        flags[permission_id] = PermissionFlag(permission_id=permission_id, granted=item.get("granted") is True)
    return tuple(flags.values())


def _normalize_fields(raw) -> tuple[FieldFlags, ...]:
    flags: dict[UUID, FieldFlags] = {}
    for item in _as_list(raw):
        if not isinstance(item, Mapping):
            continue
        field_id = coerce_uuid(item.get("field_id"))
        if field_id is None:
            continue
        is_visible = item.get("is_visible") is True
        flags[field_id] = FieldFlags(
            field_id=field_id,
            is_visible=is_visible,
            is_editable=is_visible and item.get("is_editable") is True,
        )
    return tuple(flags.values())


def resolve_data_access(has_access: bool, requested) -> str:
    if not has_access:
        return NO_DATA_ACCESS
    if isinstance(requested, str) and requested.strip().lower() in DATA_ACCESS_LEVELS:
        return requested.strip().lower()
    return DEFAULT_DATA_ACCESS_WITH_ACCESS


def normalize_module_grants(module_grants) -> list[NormalizedModuleGrant]:
    normalized: dict[UUID, NormalizedModuleGrant] = {}
    for entry in _as_list(module_grants):
        if not isinstance(entry, Mapping):
            continue
        module_id = coerce_uuid(entry.get("module_id"))
        if module_id is None:
            continue
        permissions = _normalize_permissions(entry.get("permissions"))
        explicit_access = entry.get("has_access")
        if isinstance(explicit_access, bool):
            has_access = explicit_access
        else:
            has_access = any(flag.granted for flag in permissions)
        normalized[module_id] = NormalizedModuleGrant(
            module_id=module_id,
            has_access=has_access,
            data_access=resolve_data_access(has_access, entry.get("data_access")),
            permissions=permissions,
            fields=_normalize_fields(entry.get("fields")),
        )
    return list(normalized.values())


def normalize_permission_ids(permission_ids) -> set[UUID]:
    ids = set()
    for value in _as_list(permission_ids):
        permission_id = coerce_uuid(value)
        if permission_id is not None:
            ids.add(permission_id)
    return ids


def project_legacy_permission_ids(module_grants: list[NormalizedModuleGrant]) -> set[UUID]:
    # Module access on its own implies no permission code.
    return {
        flag.permission_id
        for grant in module_grants
        for flag in grant.permissions
        if flag.granted
    }
