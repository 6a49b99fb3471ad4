"""
Booking store: persistence of booking requests.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List, Optional
from datetime import datetime
import logging

from app.models.booking import Booking, BookingStatus
from app.core.exceptions import NotFoundError, AuthorizationError, ValidationError

logger = logging.getLogger(__name__)

# Statuses a driver may set on a booking
DRIVER_DECISIONS = (BookingStatus.ACCEPTED, BookingStatus.REJECTED)

class BookingStore:
    """Reads and writes Booking records. Flushes, never commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, booking: Booking) -> Booking:
        booking.status = BookingStatus.PENDING
        if not booking.special_requests:
            booking.special_requests = "none"
        self.db.add(booking)
        await self.db.flush()
        logger.info(f"Booking created: {booking.id} on ride {booking.ride_id} by passenger {booking.passenger_id}")
        return booking

    async def get(self, booking_id: int) -> Booking:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking not found")

        return booking

    async def find_by_user(self, user_id: int, role: str) -> List[Booking]:
        """Bookings where the user is the passenger or the driver, newest first."""
        if role == "passenger":
            condition = Booking.passenger_id == user_id
        elif role == "driver":
            condition = Booking.driver_id == user_id
        else:
            raise ValidationError(f"Unknown booking role: {role}")

        query = select(Booking).where(condition).order_by(
            Booking.created_at.desc(), Booking.id.desc()
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_for_ride(
        self,
        ride_id: int,
        statuses: Optional[List[BookingStatus]] = None,
        passenger_id: Optional[int] = None
    ) -> List[Booking]:
        query = select(Booking).where(Booking.ride_id == ride_id)
        if statuses:
            query = query.where(Booking.status.in_(statuses))
        if passenger_id is not None:
            query = query.where(Booking.passenger_id == passenger_id)
        result = await self.db.execute(query.order_by(Booking.id))
        return list(result.scalars().all())

    async def update_status(self, booking_id: int, new_status: BookingStatus, caller_id: int) -> Optional[Booking]:
        """Move a booking to a new status on behalf of one of its parties.

        Accept and reject belong to the booking's driver. Cancel belongs to
        the passenger and removes the booking, returning None.
        """
        booking = await self.get(booking_id)

        if new_status == BookingStatus.CANCELLED:
            if booking.passenger_id != caller_id:
                raise AuthorizationError("Unauthorized")
            await self.delete(booking)
            return None

        if new_status not in DRIVER_DECISIONS:
            raise ValidationError("Invalid status")

        if booking.driver_id != caller_id:
            raise AuthorizationError("Unauthorized")

        booking.status = new_status
        booking.updated_at = datetime.utcnow()
        await self.db.flush()
        logger.info(f"Booking {booking.id} {new_status.value} by driver {caller_id}")
        return booking

    async def delete(self, booking: Booking) -> None:
        await self.db.delete(booking)
        await self.db.flush()
        logger.info(f"Booking deleted: {booking.id}")

    async def delete_for_ride(self, ride_id: int, status: BookingStatus) -> int:
        result = await self.db.execute(
            delete(Booking).where(Booking.ride_id == ride_id, Booking.status == status)
        )
        return result.rowcount
