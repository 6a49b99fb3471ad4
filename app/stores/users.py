"""
User store: the slice of the account service the booking workflow needs.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import logging

from app.models.user import User
from app.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

class UserStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get(self, user_id: int) -> User:
        user = await self.find(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        logger.info(f"User created: {user.id} ({user.role.value})")
        return user

    async def add_earnings(self, user_id: int, amount: float) -> Optional[User]:
        """Credit a driver. A driver missing from the account service is skipped."""
        user = await self.find(user_id)
        if not user:
            logger.warning(f"Driver {user_id} not found, earnings of {amount} not credited")
            return None

        user.total_earnings = (user.total_earnings or 0.0) + amount
        await self.db.flush()
        return user
