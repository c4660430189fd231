from sqlalchemy import select

from app.adminhub.db.models import User, coerce_uuid


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_active_by_id(self, user_id):
        user_uuid = coerce_uuid(user_id)
        if user_uuid is None:
            return None
        stmt = select(User).where(
            User.id == user_uuid,
            User.deleted_at.is_(None),
            User.is_active.is_(True),
            User.status == "active",
        )
        return self.db.execute(stmt).scalars().first()

