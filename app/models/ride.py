"""
Ride model for driver ride offers and the passengers riding along.
"""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Enum, ForeignKey, Text, JSON,
    UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship, attribute_keyed_dict
from datetime import datetime
import enum
from app.core.database import Base

class RideStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PassengerStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"

class Ride(Base):
    """A ride offered by a driver."""

    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Vehicle snapshot, copied when the ride is created
    vehicle_model = Column(String, nullable=False)
    vehicle_color = Column(String, nullable=True)
    vehicle_license_plate = Column(String, nullable=False)

    # Route
    from_city = Column(String, nullable=False, index=True)
    from_address = Column(String, nullable=False)
    from_latitude = Column(Float, nullable=True)
    from_longitude = Column(Float, nullable=True)

    to_city = Column(String, nullable=False, index=True)
    to_address = Column(String, nullable=False)
    to_latitude = Column(Float, nullable=True)
    to_longitude = Column(Float, nullable=True)

    departure_time = Column(DateTime, nullable=False, index=True)
    estimated_duration = Column(Float, nullable=True)  # minutes

    # Seats: total_seats is capacity, available_seats may go negative when overbooked
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    price_per_seat = Column(Float, nullable=False)

    status = Column(Enum(RideStatus), default=RideStatus.SCHEDULED, nullable=False)

    rules = Column(JSON, default=list, nullable=False)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Passenger entries keyed by user id, one per user
    passengers = relationship(
        "RidePassenger",
        back_populates="ride",
        collection_class=attribute_keyed_dict("user_id"),
        cascade="all, delete-orphan",
        order_by="RidePassenger.id",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("price_per_seat > 0", name="check_ride_price_positive"),
        CheckConstraint("total_seats >= 0", name="check_ride_total_seats"),
    )

    def __repr__(self):
        return f"<Ride(id={self.id}, status={self.status}, driver_id={self.driver_id})>"

class RidePassenger(Base):
    """A passenger's seat reservation embedded in a ride."""

    __tablename__ = "ride_passengers"

    id = Column(Integer, primary_key=True, index=True)
    ride_id = Column(Integer, ForeignKey("rides.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    seats = Column(Integer, default=1, nullable=False)
    status = Column(Enum(PassengerStatus), default=PassengerStatus.PENDING, nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    pickup_address = Column(String, nullable=True)
    pickup_latitude = Column(Float, nullable=True)
    pickup_longitude = Column(Float, nullable=True)

    ride = relationship("Ride", back_populates="passengers")

    __table_args__ = (
        UniqueConstraint("ride_id", "user_id", name="uq_ride_passenger_user"),
        CheckConstraint("seats > 0", name="check_ride_passenger_seats_positive"),
    )

    def __repr__(self):
        return f"<RidePassenger(id={self.id}, ride_id={self.ride_id}, user_id={self.user_id}, status={self.status})>"
