"""
Ride store: persistence of rides and their passenger entries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_
from typing import List, Optional, Tuple
from datetime import date, datetime, time, timedelta
import logging

from app.models.ride import Ride, RidePassenger, RideStatus, PassengerStatus
from app.core.exceptions import NotFoundError, AuthorizationError, ConflictError, ValidationError

logger = logging.getLogger(__name__)

# Fields a driver may change through update()
UPDATABLE_FIELDS = {
    "vehicle_model", "vehicle_color", "vehicle_license_plate",
    "from_city", "from_address", "from_latitude", "from_longitude",
    "to_city", "to_address", "to_latitude", "to_longitude",
    "departure_time", "estimated_duration", "available_seats",
    "price_per_seat", "rules", "notes",
}

class RideStore:
    """Reads and writes Ride aggregates through an AsyncSession.

    The store flushes but never commits; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, ride: Ride) -> Ride:
        ride.status = RideStatus.SCHEDULED
        if ride.total_seats is None:
            ride.total_seats = ride.available_seats
        if ride.rules is None:
            ride.rules = []
        # A new ride starts with an empty, already-loaded passenger collection
        ride.passengers = {}
        self.db.add(ride)
        await self.db.flush()
        logger.info(f"Ride created: {ride.id} by driver {ride.driver_id}")
        return ride

    async def get(self, ride_id: int, for_update: bool = False) -> Ride:
        query = select(Ride).where(Ride.id == ride_id)
        if for_update:
            # Locked reads must see the committed row, not the identity map copy
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        ride = result.scalar_one_or_none()

        if not ride:
            raise NotFoundError("Ride not found")

        return ride

    async def find(
        self,
        from_city: Optional[str] = None,
        to_city: Optional[str] = None,
        departure_date: Optional[date] = None,
        min_seats: Optional[int] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Ride]:
        """Search rides, earliest departure first."""
        query = select(Ride)

        if from_city:
            query = query.where(Ride.from_city == from_city)
        if to_city:
            query = query.where(Ride.to_city == to_city)
        if departure_date:
            day_start = datetime.combine(departure_date, time.min)
            query = query.where(
                Ride.departure_time >= day_start,
                Ride.departure_time < day_start + timedelta(days=1)
            )
        if min_seats is not None:
            query = query.where(Ride.available_seats >= min_seats)

        query = query.order_by(Ride.departure_time.asc(), Ride.id.asc()).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_for_user(self, user_id: int) -> List[Ride]:
        """Rides the user drives or holds a passenger entry on."""
        passenger_rides = select(RidePassenger.ride_id).where(RidePassenger.user_id == user_id)
        query = (
            select(Ride)
            .where(or_(Ride.driver_id == user_id, Ride.id.in_(passenger_rides)))
            .order_by(Ride.departure_time.asc(), Ride.id.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def history(self, user_id: int) -> Tuple[List[Ride], List[Ride]]:
        """Completed and cancelled rides the user took part in."""
        confirmed_on = select(RidePassenger.ride_id).where(
            RidePassenger.user_id == user_id,
            RidePassenger.status == PassengerStatus.CONFIRMED
        )
        confirmed_or_cancelled_on = select(RidePassenger.ride_id).where(
            RidePassenger.user_id == user_id,
            RidePassenger.status.in_([PassengerStatus.CONFIRMED, PassengerStatus.CANCELLED])
        )

        completed_query = select(Ride).where(
            Ride.status == RideStatus.COMPLETED,
            or_(Ride.driver_id == user_id, Ride.id.in_(confirmed_on))
        ).order_by(Ride.departure_time.desc())
        cancelled_query = select(Ride).where(
            Ride.status == RideStatus.CANCELLED,
            or_(Ride.driver_id == user_id, Ride.id.in_(confirmed_or_cancelled_on))
        ).order_by(Ride.departure_time.desc())

        completed = (await self.db.execute(completed_query)).scalars().all()
        cancelled = (await self.db.execute(cancelled_query)).scalars().all()
        return list(completed), list(cancelled)

    async def count_completed(self, user_id: int, as_driver: bool) -> int:
        if as_driver:
            condition = Ride.driver_id == user_id
        else:
            condition = Ride.id.in_(
                select(RidePassenger.ride_id).where(
                    and_(
                        RidePassenger.user_id == user_id,
                        RidePassenger.status == PassengerStatus.CONFIRMED
                    )
                )
            )
        query = select(Ride.id).where(Ride.status == RideStatus.COMPLETED, condition)
        result = await self.db.execute(query)
        return len(result.scalars().all())

    async def update(self, ride_id: int, patch: dict, caller_id: int) -> Ride:
        """Apply a driver's changes to ride fields."""
        ride = await self.get(ride_id)

        if ride.driver_id != caller_id:
            raise AuthorizationError("Not authorized to update this ride")

        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        for field, value in patch.items():
            setattr(ride, field, value)

        if "available_seats" in patch:
            # Capacity follows the driver's new free-seat count
            ride.total_seats = ride.available_seats + sum(
                p.seats for p in ride.passengers.values()
                if p.status == PassengerStatus.CONFIRMED
            )

        await self.save(ride)
        logger.info(f"Ride updated: {ride_id}")
        return ride

    async def save(self, ride: Ride) -> Ride:
        ride.updated_at = datetime.utcnow()
        await self.db.flush()
        return ride

    async def delete(self, ride: Ride) -> None:
        """Remove a ride that has no confirmed passengers."""
        if any(p.status == PassengerStatus.CONFIRMED for p in ride.passengers.values()):
            raise ConflictError(
                "Cannot delete ride with confirmed bookings. "
                "Please cancel or complete these bookings first."
            )

        await self.db.delete(ride)
        await self.db.flush()
        logger.info(f"Ride deleted: {ride.id}")
