"""
Booking API endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.core.database import get_db
from app.models.user import User
from app.stores.bookings import BookingStore
from app.workflow.booking_workflow import BookingWorkflow
from app.api.v1.deps import get_current_user, get_workflow
from app.api.v1.schemas import BookingCreate, BookingResponse, StatusUpdate, MessageResponse

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Request seats on a ride."""
    return await workflow.create_booking(booking_data.model_dump(), current_user.id)

@router.get("/passenger", response_model=List[BookingResponse])
async def get_passenger_bookings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Bookings made by the caller, newest first."""
    return await BookingStore(db).find_by_user(current_user.id, "passenger")

@router.get("/driver", response_model=List[BookingResponse])
async def get_driver_bookings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Bookings on the caller's rides, newest first."""
    return await BookingStore(db).find_by_user(current_user.id, "driver")

@router.put("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    status_update: StatusUpdate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Accept or reject a booking. Driver only."""
    return await workflow.update_booking_status(booking_id, status_update.status, current_user.id)

@router.delete("/{booking_id}", response_model=MessageResponse)
async def cancel_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Cancel (delete) one of the caller's bookings."""
    await workflow.cancel_booking(booking_id, current_user.id)
    return MessageResponse(message="Booking cancelled")
