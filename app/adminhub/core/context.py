from dataclasses import dataclass
from uuid import UUID

from fastapi import Request


@dataclass(frozen=True)
class PrincipalContext:
    """Authenticated actor a permission question is asked for."""

    user_id: UUID
    tenant_id: UUID | None
    role_id: UUID | None
    trace_id: str = ""
    username: str | None = None


def build_principal_context(
    *,
    user_id: UUID,
    tenant_id: UUID | None,
    role_id: UUID | None,
    trace_id: str = "",
    username: str | None = None,
) -> PrincipalContext:
    return PrincipalContext(
        user_id=user_id,
        tenant_id=tenant_id,
        role_id=role_id,
        trace_id=trace_id,
        username=username,
    )


def get_trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")
