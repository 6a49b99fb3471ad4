"""
User endpoints. Accounts live in the account service; these cover what the
booking workflow reads and writes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.core.database import get_db
from app.core.exceptions import ConflictError
from app.models.user import User, UserRole
from app.stores.users import UserStore
from app.stores.rides import RideStore
from app.api.v1.schemas import UserCreate, UserResponse, UserStats

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a driver or passenger."""
    users = UserStore(db)

    if await users.find_by_email(user_data.email):
        raise ConflictError("User with this email already exists")

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        phone=user_data.phone,
        role=user_data.role,
        rating=0.0,
        total_rides=0,
        total_earnings=0.0
    )
    await users.create(new_user)
    await db.commit()

    return new_user

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get user by ID."""
    return await UserStore(db).get(user_id)

@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(
    user_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Completed ride count and earnings for a user."""
    user = await UserStore(db).get(user_id)
    is_driver = user.role == UserRole.DRIVER

    total_rides = await RideStore(db).count_completed(user_id, as_driver=is_driver)

    return UserStats(
        total_rides=total_rides,
        rating=user.rating or 0.0,
        earnings=(user.total_earnings or 0.0) if is_driver else 0.0
    )
