"""
Booking model: a passenger's request to join a ride.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey, Text, CheckConstraint
from datetime import datetime
import enum
from app.core.database import Base

class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class Booking(Base):
    """Booking request, kept apart from the ride's passenger list."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    # Plain id reference: a booking can outlive the ride it points at
    ride_id = Column(Integer, nullable=False, index=True)
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    seats = Column(Integer, nullable=False)
    pickup_location = Column(String, nullable=False)
    dropoff_location = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    special_requests = Column(Text, default="none", nullable=False)

    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("seats > 0", name="check_booking_seats_positive"),
        CheckConstraint("price > 0", name="check_booking_price_positive"),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, ride_id={self.ride_id}, passenger_id={self.passenger_id}, status={self.status})>"
