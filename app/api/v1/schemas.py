"""
Pydantic schemas for API request/response models.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from app.models.user import UserRole
from app.models.ride import RideStatus, PassengerStatus, PaymentStatus
from app.models.booking import BookingStatus

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Rides store naive UTC timestamps."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

# User schemas
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Full name")
    email: str = Field(..., min_length=3, description="User email address")
    phone: Optional[str] = Field(None, description="User phone number")
    role: UserRole = Field(..., description="driver or passenger")

class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    role: UserRole
    rating: float
    total_rides: int
    total_earnings: float
    created_at: datetime

    class Config:
        from_attributes = True

class UserStats(BaseModel):
    total_rides: int
    rating: float
    earnings: float

# Ride schemas
class VehicleSnapshot(BaseModel):
    model: str = Field(..., min_length=1, description="Vehicle model")
    color: Optional[str] = Field(None, description="Vehicle color")
    license_plate: str = Field(..., min_length=1, description="License plate")

class RouteEndpoint(BaseModel):
    city: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

def _flatten_route(data: Dict[str, Any], vehicle, origin, destination) -> Dict[str, Any]:
    if vehicle is not None:
        data["vehicle_model"] = vehicle.model
        data["vehicle_color"] = vehicle.color
        data["vehicle_license_plate"] = vehicle.license_plate
    for prefix, endpoint in (("from", origin), ("to", destination)):
        if endpoint is not None:
            data[f"{prefix}_city"] = endpoint.city
            data[f"{prefix}_address"] = endpoint.address
            data[f"{prefix}_latitude"] = endpoint.latitude
            data[f"{prefix}_longitude"] = endpoint.longitude
    return data

class RideCreate(BaseModel):
    vehicle: VehicleSnapshot
    origin: RouteEndpoint
    destination: RouteEndpoint
    departure_time: datetime
    estimated_duration: Optional[float] = Field(None, ge=0, description="Minutes")
    available_seats: int = Field(..., ge=0)
    price_per_seat: float = Field(..., gt=0)
    rules: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("departure_time")
    @classmethod
    def naive_departure(cls, v):
        return to_naive_utc(v)

    def to_columns(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"vehicle", "origin", "destination"})
        return _flatten_route(data, self.vehicle, self.origin, self.destination)

class RideUpdate(BaseModel):
    vehicle: Optional[VehicleSnapshot] = None
    origin: Optional[RouteEndpoint] = None
    destination: Optional[RouteEndpoint] = None
    departure_time: Optional[datetime] = None
    estimated_duration: Optional[float] = Field(None, ge=0)
    available_seats: Optional[int] = Field(None, ge=0)
    price_per_seat: Optional[float] = Field(None, gt=0)
    rules: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("departure_time")
    @classmethod
    def naive_departure(cls, v):
        return to_naive_utc(v)

    def to_columns(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"vehicle", "origin", "destination"})
        return _flatten_route(data, self.vehicle, self.origin, self.destination)

class PassengerEntryResponse(BaseModel):
    id: int
    user_id: int
    seats: int
    status: PassengerStatus
    payment_status: PaymentStatus
    pickup_address: Optional[str]
    pickup_latitude: Optional[float]
    pickup_longitude: Optional[float]

    class Config:
        from_attributes = True

class RideResponse(BaseModel):
    id: int
    driver_id: int
    status: RideStatus
    vehicle_model: str
    vehicle_color: Optional[str]
    vehicle_license_plate: str
    from_city: str
    from_address: str
    from_latitude: Optional[float]
    from_longitude: Optional[float]
    to_city: str
    to_address: str
    to_latitude: Optional[float]
    to_longitude: Optional[float]
    departure_time: datetime
    estimated_duration: Optional[float]
    total_seats: int
    available_seats: int
    price_per_seat: float
    rules: List[str]
    notes: Optional[str]
    passengers: List[PassengerEntryResponse]
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    @field_validator("passengers", mode="before")
    @classmethod
    def passengers_as_list(cls, v):
        if isinstance(v, dict):
            return list(v.values())
        return v

    class Config:
        from_attributes = True

class RideHistoryResponse(BaseModel):
    completed: List[RideResponse]
    canceled: List[RideResponse]

class StatusUpdate(BaseModel):
    status: str = Field(..., description="Target status")

class PaymentResponse(BaseModel):
    message: str
    ride_id: int
    passenger: PassengerEntryResponse

# Booking schemas
class BookingCreate(BaseModel):
    ride_id: int
    seats: int = Field(..., ge=1)
    pickup_location: str = Field(..., min_length=1)
    dropoff_location: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, description="Total price, seats * price per seat")
    special_requests: Optional[str] = Field(None, description="Defaults to 'none'")

class BookingResponse(BaseModel):
    id: int
    ride_id: int
    passenger_id: int
    driver_id: int
    seats: int
    pickup_location: str
    dropoff_location: str
    price: float
    special_requests: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# Generic responses
class MessageResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[Any] = None
