"""
Seat ledger: the only code that changes a ride's free seats or its passenger entries.

Invariant kept on every change:

    ride.available_seats + confirmed_seats(ride) == ride.total_seats

In lenient mode available_seats may go below zero when a driver confirms
more passengers than the ride holds. In strict mode such a confirmation
raises ConflictError and nothing is changed.
"""

from typing import Optional
import logging

from app.models.ride import Ride, RidePassenger, PassengerStatus, PaymentStatus
from app.stores.rides import RideStore
from app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)

def confirmed_seats(ride: Ride) -> int:
    """Seats held by confirmed passengers."""
    return sum(
        entry.seats for entry in ride.passengers.values()
        if entry.status == PassengerStatus.CONFIRMED
    )

def find_entry(ride: Ride, entry_id: int) -> Optional[RidePassenger]:
    for entry in ride.passengers.values():
        if entry.id == entry_id:
            return entry
    return None

class SeatLedger:

    def __init__(self, rides: RideStore, strict: bool = False):
        self.rides = rides
        self.strict = strict

    def check_capacity(self, ride: Ride, seats: int) -> None:
        """Raise ConflictError in strict mode when seats exceed what is free."""
        if self.strict and seats > ride.available_seats:
            raise ConflictError(
                f"Only {ride.available_seats} seat(s) available on ride {ride.id}, {seats} requested"
            )

    def _reserve(self, ride: Ride, seats: int) -> None:
        self.check_capacity(ride, seats)
        ride.available_seats -= seats
        if ride.available_seats < 0:
            logger.warning(f"Ride {ride.id} overbooked: available_seats={ride.available_seats}")

    def _release(self, ride: Ride, seats: int) -> None:
        ride.available_seats += seats

    async def confirm_passenger(
        self,
        ride: Ride,
        user_id: int,
        seats: int,
        pickup_address: Optional[str],
        pickup_latitude: Optional[float] = None,
        pickup_longitude: Optional[float] = None
    ) -> RidePassenger:
        """Give a passenger confirmed seats on a ride.

        An existing entry for the user is updated in place; a new one is
        appended otherwise. Confirming an entry that is already confirmed
        does not take its seats a second time: the entry is resized to
        ``seats`` and only the difference is reserved or released.
        """
        entry = ride.passengers.get(user_id)

        if entry is not None and entry.status == PassengerStatus.CONFIRMED:
            # The entry takes the new seat count; only the difference moves
            if seats > entry.seats:
                self._reserve(ride, seats - entry.seats)
            elif seats < entry.seats:
                self._release(ride, entry.seats - seats)
            entry.seats = seats
            entry.payment_status = PaymentStatus.PENDING
            await self.rides.save(ride)
            logger.info(f"Passenger {user_id} already confirmed on ride {ride.id}, now holds {seats} seat(s)")
            return entry

        self._reserve(ride, seats)

        if entry is not None:
            entry.status = PassengerStatus.CONFIRMED
            entry.payment_status = PaymentStatus.PENDING
            entry.seats = seats
        else:
            entry = RidePassenger(
                user_id=user_id,
                seats=seats,
                status=PassengerStatus.CONFIRMED,
                payment_status=PaymentStatus.PENDING,
                pickup_address=pickup_address,
                pickup_latitude=pickup_latitude,
                pickup_longitude=pickup_longitude,
            )
            ride.passengers[user_id] = entry

        await self.rides.save(ride)
        logger.info(f"Passenger {user_id} confirmed on ride {ride.id} for {seats} seat(s)")
        return entry

    async def set_passenger_status(self, ride: Ride, entry: RidePassenger, status: PassengerStatus) -> RidePassenger:
        """Move a passenger entry to a new status, reserving or releasing its seats."""
        was_confirmed = entry.status == PassengerStatus.CONFIRMED
        will_be_confirmed = status == PassengerStatus.CONFIRMED

        if will_be_confirmed and not was_confirmed:
            self._reserve(ride, entry.seats)
        elif was_confirmed and not will_be_confirmed:
            self._release(ride, entry.seats)

        entry.status = status
        await self.rides.save(ride)
        logger.info(f"Passenger entry {entry.id} on ride {ride.id} set to {status.value}")
        return entry
