import threading
import time

import pytest
from sqlalchemy import select

from app.adminhub.core.tenancy import TenantScopeGuard
from app.adminhub.db.models import RolePermission
from app.adminhub.services.grant_writer import GrantWriter
from tests.rbac_helpers import create_role, module, permission, principal_for, seed_defaults, superadmin


def _grants(db_session, *codes):
    return [
        {
            "module_id": str(module(db_session, "leads").id),
            "permissions": [{"permission_id": str(permission(db_session, code).id), "granted": True} for code in codes],
        }
    ]


def test_concurrent_writers_of_one_role_do_not_interleave(db_session):
    if db_session.get_bind().dialect.name != "postgresql":
        pytest.skip("row locks need postgres")
    from app.adminhub.db.session import SessionLocal

    seed_defaults(db_session)
    role = create_role(db_session, "SALES")
    actor = principal_for(superadmin(db_session))
    first_payload = _grants(db_session, "leads:read", "leads:update")
    second_payload = _grants(db_session, "leads:create")

    locked = threading.Event()
    release = threading.Event()
    errors = []

    def run(payload, hold=False):
        session = SessionLocal()
        try:
            writer = GrantWriter(session, TenantScopeGuard(False))
            if hold:
                replace = writer.repo.replace_module_tree

                def paused(*args, **kwargs):
                    locked.set()
                    release.wait(timeout=10)
                    return replace(*args, **kwargs)

                writer.repo.replace_module_tree = paused
            writer.apply_role_grants(role.id, payload, actor=actor)
        except Exception as exc:
            errors.append(exc)
        finally:
            session.close()

    first = threading.Thread(target=run, args=(first_payload, True))
    first.start()
    assert locked.wait(timeout=10)

    second = threading.Thread(target=run, args=(second_payload,))
    second.start()
    time.sleep(0.5)
    assert second.is_alive()

    release.set()
    first.join(timeout=10)
    second.join(timeout=10)

    assert errors == []
    db_session.expire_all()
    rows = db_session.execute(select(RolePermission).where(RolePermission.role_id == role.id)).scalars().all()
    assert {row.permission_id for row in rows} == {permission(db_session, "leads:create").id}
