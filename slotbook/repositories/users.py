"""User existence checks."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.database import run_statement
from slotbook.models.users import users


class UserRepository:
    """Answers whether a user may own appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def user_exists(self, user_id: UUID) -> bool:
        """True if the user exists and the account is active."""
        query = select(users.c.id).where(and_(users.c.id == user_id, users.c.is_active.is_(True)))
        result = await run_statement(self.db, query)
        return result.scalar_one_or_none() is not None
