import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.orm import sessionmaker

from app.adminhub.db.models import Module, ModuleField, PermissionCatalog, Role, RoleModuleAccess, RolePermission, User
from app.adminhub.db.seed import run_seed


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def test_migrations_apply(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'migrations.db'}"
    _run_migrations(database_url)

    inspector = inspect(create_engine(database_url, future=True))
    tables = set(inspector.get_table_names())

    for table in (
        "tenants",
        "roles",
        "users",
        "modules",
        "module_fields",
        "permissions",
        "role_module_access",
        "role_field_permissions",
        "role_permissions",
        "audit_events",
    ):
        assert table in tables

    primary_key = inspector.get_pk_constraint("role_permissions")["constrained_columns"]
    assert set(primary_key) == {"role_id", "permission_id"}
    indexes = [index["name"] for index in inspector.get_indexes("role_field_permissions")]
    assert "ix_role_field_permissions_role_module" in indexes


def test_seed_is_idempotent(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'seed.db'}"
    _run_migrations(database_url)
    SessionLocal = sessionmaker(bind=create_engine(database_url, future=True), future=True)
    counted = (Module, ModuleField, PermissionCatalog, Role, RoleModuleAccess, RolePermission, User)

    with SessionLocal() as db:
        run_seed(db)
        first = [db.scalar(select(func.count()).select_from(model)) for model in counted]
        run_seed(db)
        second = [db.scalar(select(func.count()).select_from(model)) for model in counted]

        assert first == second
        codes = set(db.execute(select(PermissionCatalog.code)).scalars().all())
        assert {"admin:*", "leads:read", "leads:*", "students:delete"} <= codes
        super_admin = db.execute(select(Role).where(Role.code == "SUPER_ADMIN")).scalars().one()
        assert super_admin.is_system is True
        assert super_admin.tenant_id is None
