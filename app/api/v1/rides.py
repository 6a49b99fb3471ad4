"""
Ride management API endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
import logging

from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.stores.rides import RideStore
from app.workflow.booking_workflow import BookingWorkflow
from app.api.v1.deps import get_current_user, get_workflow
from app.api.v1.schemas import (
    RideCreate, RideUpdate, RideResponse, RideHistoryResponse,
    StatusUpdate, PaymentResponse, PassengerEntryResponse, MessageResponse
)

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/", response_model=RideResponse, status_code=status.HTTP_201_CREATED)
async def create_ride(
    ride_data: RideCreate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Offer a new ride. The caller becomes its driver."""
    return await workflow.create_ride(ride_data.to_columns(), current_user)

@router.get("/", response_model=List[RideResponse])
async def list_rides(
    from_city: Optional[str] = Query(None, alias="from"),
    to_city: Optional[str] = Query(None, alias="to"),
    departure_date: Optional[date] = Query(None, alias="date"),
    seats: Optional[int] = Query(None, ge=0, description="Minimum available seats"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Search rides by route, day and free seats, earliest departure first."""
    return await RideStore(db).find(
        from_city=from_city,
        to_city=to_city,
        departure_date=departure_date,
        min_seats=seats,
        limit=limit,
        offset=offset
    )

@router.get("/mine", response_model=List[RideResponse])
async def get_user_rides(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Rides the caller drives or rides on."""
    return await RideStore(db).find_for_user(current_user.id)

@router.get("/history/{user_id}", response_model=RideHistoryResponse)
async def get_ride_history(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Completed and cancelled rides for a user."""
    completed, cancelled = await RideStore(db).history(user_id)
    return RideHistoryResponse(
        completed=[RideResponse.model_validate(ride) for ride in completed],
        canceled=[RideResponse.model_validate(ride) for ride in cancelled]
    )

@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get ride details by ID."""
    return await RideStore(db).get(ride_id)

@router.put("/{ride_id}", response_model=RideResponse)
async def update_ride(
    ride_id: int,
    ride_update: RideUpdate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Update ride details. Driver only."""
    return await workflow.update_ride(ride_id, ride_update.to_columns(), current_user.id)

@router.delete("/{ride_id}", response_model=MessageResponse)
async def delete_ride(
    ride_id: int,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Delete a ride that has no confirmed passengers."""
    await workflow.delete_ride(ride_id, current_user.id)
    return MessageResponse(message="Ride deleted successfully")

@router.put("/{ride_id}/status", response_model=RideResponse)
async def update_ride_status(
    ride_id: int,
    status_update: StatusUpdate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Move a ride to scheduled, started, completed or cancelled."""
    return await workflow.update_ride_status(ride_id, status_update.status)

@router.put("/{ride_id}/pay", response_model=PaymentResponse)
async def pay_for_ride(
    ride_id: int,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Mark the caller's seats on a ride as paid."""
    entry = await workflow.pay_for_ride(ride_id, current_user.id)
    return PaymentResponse(
        message="Payment marked as completed",
        ride_id=ride_id,
        passenger=PassengerEntryResponse.model_validate(entry)
    )

@router.put("/{ride_id}/passengers/{entry_id}/status", response_model=RideResponse)
async def update_passenger_status(
    ride_id: int,
    entry_id: int,
    status_update: StatusUpdate,
    current_user: User = Depends(get_current_user),
    workflow: BookingWorkflow = Depends(get_workflow)
):
    """Change one passenger's status on a ride, e.g. when a passenger cancels."""
    return await workflow.update_passenger_status(
        ride_id, entry_id, status_update.status, current_user.id
    )
