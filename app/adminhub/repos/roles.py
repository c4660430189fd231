from sqlalchemy import desc, func, or_, select

from app.adminhub.db.models import Role, User, coerce_uuid


class RoleRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, role_id, *, tenant_id=None, scoped: bool = False):
        role_uuid = coerce_uuid(role_id)
        if role_uuid is None:
            return None
        stmt = select(Role).where(Role.id == role_uuid, Role.deleted_at.is_(None))
        if scoped:
            stmt = stmt.where(or_(Role.tenant_id.is_(None), Role.tenant_id == coerce_uuid(tenant_id)))
        return self.db.execute(stmt).scalars().first()

    def get_by_code(self, code: str, *, tenant_id=None):
        stmt = select(Role).where(Role.code == code, Role.deleted_at.is_(None))
        if tenant_id is None:
            stmt = stmt.where(Role.tenant_id.is_(None))
        else:
            stmt = stmt.where(Role.tenant_id == tenant_id)
        return self.db.execute(stmt).scalars().first()

    def list_roles(
        self,
        *,
        tenant_id=None,
        scoped: bool = False,
        search: str | None = None,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ):
        stmt = select(Role).where(Role.deleted_at.is_(None))
        count_stmt = select(func.count()).select_from(Role).where(Role.deleted_at.is_(None))
        filters = []
        if scoped:
            filters.append(or_(Role.tenant_id.is_(None), Role.tenant_id == tenant_id))
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Role.name.ilike(pattern), Role.code.ilike(pattern), Role.description.ilike(pattern)))
        if status:
            filters.append(Role.status == status)
        for clause in filters:
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)
        total = self.db.execute(count_stmt).scalar_one()
        stmt = stmt.order_by(desc(Role.created_at), Role.code).limit(limit).offset(offset)
        return self.db.execute(stmt).scalars().all(), total

    def count_users(self, role_id) -> int:
        stmt = select(func.count()).select_from(User).where(User.role_id == role_id, User.deleted_at.is_(None))
        return self.db.execute(stmt).scalar_one()

    def add(self, role: Role) -> Role:
        self.db.add(role)
        self.db.flush()
        return role
