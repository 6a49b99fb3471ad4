"""
Shared request dependencies: caller identity and the booking workflow.
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import NotAuthenticatedError
from app.models.user import User
from app.stores.users import UserStore
from app.workflow.booking_workflow import BookingWorkflow

async def get_current_user(
    x_user_id: Optional[int] = Header(None, description="Caller id set by the auth gateway"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the authenticated caller. Role comes from the stored user."""
    if x_user_id is None:
        raise NotAuthenticatedError("Missing X-User-Id header")

    user = await UserStore(db).find(x_user_id)
    if not user:
        raise NotAuthenticatedError("Unknown user")

    return user

async def get_workflow(db: AsyncSession = Depends(get_db)) -> BookingWorkflow:
    return BookingWorkflow(db)
