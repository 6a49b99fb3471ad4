"""
Booking workflow engine.

Drives the ride and booking lifecycle:

    passenger books        -> Booking(pending), driver copied from the ride
    driver accepts         -> Booking(accepted), passenger confirmed on the ride
    driver rejects         -> Booking(rejected), ride untouched
    passenger cancels      -> Booking deleted
    passenger pays         -> entry payment completed, driver credited
    driver deletes ride    -> pending bookings deleted, then the ride

Every public operation runs as one unit of work on the session: it commits
once at the end, and any error rolls back both the booking and the ride
changes made so far.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from app.core.config import settings
from app.core.exceptions import ValidationError, NotFoundError, AuthorizationError, ConflictError
from app.models.ride import Ride, RideStatus, PassengerStatus, PaymentStatus
from app.models.booking import Booking, BookingStatus
from app.models.user import User, UserRole
from app.stores.rides import RideStore
from app.stores.bookings import BookingStore
from app.stores.users import UserStore
from app.workflow.seat_ledger import SeatLedger, find_entry

logger = logging.getLogger(__name__)

RIDE_STATUS_ALIASES = {"in-progress": RideStatus.STARTED, "in_progress": RideStatus.STARTED}

RIDE_TRANSITIONS = {
    RideStatus.SCHEDULED: {RideStatus.STARTED, RideStatus.CANCELLED},
    RideStatus.STARTED: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

REQUIRED_RIDE_FIELDS = {
    "vehicle_model", "vehicle_license_plate", "from_city", "from_address",
    "to_city", "to_address", "departure_time", "available_seats",
    "price_per_seat", "rules",
}

# Cents are the smallest unit a client-computed price can differ by
PRICE_TOLERANCE = 0.005

@dataclass(frozen=True)
class WorkflowPolicy:
    """Switches between the lenient default rules and strict ones."""
    strict_seats: bool = False
    strict_transitions: bool = False
    verify_price: bool = False

    @classmethod
    def from_settings(cls) -> "WorkflowPolicy":
        return cls(
            strict_seats=settings.STRICT_SEAT_ACCOUNTING,
            strict_transitions=settings.STRICT_RIDE_STATUS_TRANSITIONS,
            verify_price=settings.VERIFY_BOOKING_PRICE,
        )

def parse_ride_status(value: str) -> RideStatus:
    if value in RIDE_STATUS_ALIASES:
        return RIDE_STATUS_ALIASES[value]
    try:
        return RideStatus(value)
    except ValueError:
        raise ValidationError("Invalid status value")

def parse_passenger_status(value: str) -> PassengerStatus:
    try:
        return PassengerStatus(value)
    except ValueError:
        raise ValidationError("Invalid passenger status")

def parse_booking_decision(value: str) -> BookingStatus:
    if value not in (BookingStatus.ACCEPTED.value, BookingStatus.REJECTED.value):
        raise ValidationError("Invalid status")
    return BookingStatus(value)

class BookingWorkflow:
    """Orchestrates the stores and the seat ledger for one request."""

    def __init__(self, db: AsyncSession, policy: Optional[WorkflowPolicy] = None):
        self.db = db
        self.policy = policy or WorkflowPolicy.from_settings()
        self.rides = RideStore(db)
        self.bookings = BookingStore(db)
        self.users = UserStore(db)
        self.ledger = SeatLedger(self.rides, strict=self.policy.strict_seats)

    @asynccontextmanager
    async def _unit_of_work(self):
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # Rides

    async def create_ride(self, data: dict, caller: User) -> Ride:
        if caller.role != UserRole.DRIVER:
            raise AuthorizationError("Only drivers can offer rides")

        if data.get("available_seats") is None or data["available_seats"] < 0:
            raise ValidationError("available_seats must be zero or more")
        if not data.get("price_per_seat") or data["price_per_seat"] <= 0:
            raise ValidationError("price_per_seat must be positive")

        async with self._unit_of_work():
            ride = Ride(driver_id=caller.id, total_seats=data["available_seats"], **data)
            await self.rides.create(ride)
        return ride

    async def update_ride(self, ride_id: int, patch: dict, caller_id: int) -> Ride:
        missing = sorted(field for field in REQUIRED_RIDE_FIELDS if field in patch and patch[field] is None)
        if missing:
            raise ValidationError(f"Fields cannot be empty: {', '.join(missing)}")
        if "price_per_seat" in patch and patch["price_per_seat"] <= 0:
            raise ValidationError("price_per_seat must be positive")

        async with self._unit_of_work():
            ride = await self.rides.update(ride_id, patch, caller_id)
        return ride

    async def delete_ride(self, ride_id: int, caller_id: int) -> None:
        async with self._unit_of_work():
            ride = await self.rides.get(ride_id)

            if ride.driver_id != caller_id:
                raise AuthorizationError("Not authorized to delete this ride")

            confirmed = await self.bookings.find_for_ride(ride_id, statuses=[BookingStatus.CONFIRMED])
            if confirmed:
                raise ConflictError(
                    "Cannot delete ride with confirmed bookings. "
                    "Please cancel or complete these bookings first."
                )

            # RideStore.delete refuses rides that still have confirmed passengers
            await self.rides.delete(ride)
            removed = await self.bookings.delete_for_ride(ride_id, BookingStatus.PENDING)

        logger.info(f"Ride {ride_id} deleted by driver {caller_id}, {removed} pending booking(s) removed")

    async def update_ride_status(self, ride_id: int, status: str) -> Ride:
        new_status = parse_ride_status(status)

        async with self._unit_of_work():
            ride = await self.rides.get(ride_id)

            if (
                self.policy.strict_transitions
                and new_status != ride.status
                and new_status not in RIDE_TRANSITIONS[ride.status]
            ):
                raise ConflictError(
                    f"Invalid ride transition: {ride.status.value} -> {new_status.value}"
                )

            current_time = datetime.utcnow()
            if new_status == RideStatus.STARTED and not ride.started_at:
                ride.started_at = current_time
            elif new_status == RideStatus.COMPLETED and not ride.completed_at:
                ride.completed_at = current_time
            elif new_status == RideStatus.CANCELLED and not ride.cancelled_at:
                ride.cancelled_at = current_time

            ride.status = new_status
            await self.rides.save(ride)

        logger.info(f"Ride {ride_id} status set to {new_status.value}")
        return ride

    async def update_passenger_status(self, ride_id: int, entry_id: int, status: str, caller_id: int) -> Ride:
        new_status = parse_passenger_status(status)

        async with self._unit_of_work():
            ride = await self.rides.get(ride_id, for_update=self.policy.strict_seats)
            entry = find_entry(ride, entry_id)
            if entry is None:
                raise NotFoundError("Passenger not found")

            if caller_id not in (ride.driver_id, entry.user_id):
                raise AuthorizationError("Not authorized to update this passenger")

            await self.ledger.set_passenger_status(ride, entry, new_status)
        return ride

    async def pay_for_ride(self, ride_id: int, caller_id: int):
        async with self._unit_of_work():
            ride = await self.rides.get(ride_id)
            entry = ride.passengers.get(caller_id)

            if entry is None or entry.status != PassengerStatus.CONFIRMED:
                raise NotFoundError("Passenger not found or not confirmed for this ride")
            if entry.payment_status == PaymentStatus.COMPLETED:
                raise ConflictError("Payment already completed for this ride")

            entry.payment_status = PaymentStatus.COMPLETED
            await self.rides.save(ride)

            earnings = ride.price_per_seat * entry.seats
            await self.users.add_earnings(ride.driver_id, earnings)

        logger.info(f"Passenger {caller_id} paid {earnings} for ride {ride_id}")
        return entry

    # Bookings

    async def create_booking(self, data: dict, caller_id: int) -> Booking:
        ride_id = data.get("ride_id")
        seats = data.get("seats")
        price = data.get("price")

        if not ride_id or not seats or not data.get("pickup_location") \
                or not data.get("dropoff_location") or not price:
            raise ValidationError("All fields are required")
        if seats < 1:
            raise ValidationError("seats must be at least 1")
        if price <= 0:
            raise ValidationError("price must be positive")

        async with self._unit_of_work():
            ride = await self.rides.get(ride_id)

            if self.policy.verify_price:
                expected = seats * ride.price_per_seat
                if abs(price - expected) > PRICE_TOLERANCE:
                    raise ValidationError(
                        f"Price {price} does not match {seats} seat(s) at {ride.price_per_seat}"
                    )

            if self.policy.strict_seats:
                self.ledger.check_capacity(ride, seats)
                active = await self.bookings.find_for_ride(
                    ride_id,
                    statuses=[BookingStatus.PENDING, BookingStatus.ACCEPTED],
                    passenger_id=caller_id
                )
                if active:
                    raise ConflictError("You already have an active booking for this ride")

            booking = Booking(
                ride_id=ride.id,
                passenger_id=caller_id,
                driver_id=ride.driver_id,
                seats=seats,
                pickup_location=data["pickup_location"],
                dropoff_location=data["dropoff_location"],
                price=price,
                special_requests=data.get("special_requests") or "none",
            )
            await self.bookings.create(booking)
        return booking

    async def update_booking_status(self, booking_id: int, status: str, caller_id: int) -> Booking:
        new_status = parse_booking_decision(status)

        async with self._unit_of_work():
            booking = await self.bookings.update_status(booking_id, new_status, caller_id)

            if new_status == BookingStatus.ACCEPTED:
                ride = await self.rides.get(booking.ride_id, for_update=self.policy.strict_seats)
                await self.ledger.confirm_passenger(
                    ride, booking.passenger_id, booking.seats, booking.pickup_location
                )

        return booking

    async def cancel_booking(self, booking_id: int, caller_id: int) -> None:
        async with self._unit_of_work():
            await self.bookings.update_status(booking_id, BookingStatus.CANCELLED, caller_id)
        logger.info(f"Booking {booking_id} cancelled by passenger {caller_id}")
