"""
Mission Pydantic schemas.

Defines request and response models for mission endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List
from fieldops.app.models.enums import MissionStatus, ServiceType, LocationType


class MissionCreate(BaseModel):
    """
    Schema for creating a mission.

    Clients always create for themselves; admins pass `client_id`.
    """
    client_id: Optional[int] = Field(None, description="Owning client (admin only)")

    passenger_name: str = Field(..., min_length=1, max_length=255)
    passenger_phone: Optional[str] = Field(None, max_length=50)
    passenger_email: Optional[EmailStr] = None
    passenger_count: Optional[int] = Field(None, ge=1)

    group_leader_name: Optional[str] = Field(None, max_length=255)
    group_leader_phone: Optional[str] = Field(None, max_length=50)
    group_leader_email: Optional[EmailStr] = None

    flight_number: Optional[str] = Field(None, max_length=50)
    train_number: Optional[str] = Field(None, max_length=50)
    ship_name: Optional[str] = Field(None, max_length=255)

    scheduled_at: datetime
    pickup_location: str = Field(..., min_length=1, max_length=500)
    dropoff_location: Optional[str] = Field(None, max_length=500)

    service_type: ServiceType
    location_type: LocationType = LocationType.AIRPORT
    notes: Optional[str] = None

    quote: bool = Field(default=False, description="Price the mission from the rate cards")
    distance_km: Optional[float] = Field(None, ge=0, description="Distance used for per-km pricing")


class AttachmentResponse(BaseModel):
    storage_id: str
    file_name: str
    file_type: str
    uploaded_at: datetime
    url: Optional[str] = None


class AttachmentCreate(BaseModel):
    storage_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., min_length=1, max_length=100)


class MissionResponse(BaseModel):
    """Schema for mission response."""
    id: int
    client_id: int
    agent_id: Optional[int]

    passenger_name: str
    passenger_phone: Optional[str]
    passenger_email: Optional[str]
    passenger_count: Optional[int]

    group_leader_name: Optional[str]
    group_leader_phone: Optional[str]
    group_leader_email: Optional[str]

    flight_number: Optional[str]
    train_number: Optional[str]
    ship_name: Optional[str]

    scheduled_at: datetime
    pickup_location: str
    dropoff_location: Optional[str]

    service_type: ServiceType
    location_type: LocationType
    status: MissionStatus

    quoted_price: Optional[int]
    currency: Optional[str]

    attachments: List[AttachmentResponse] = []
    notes: Optional[str]

    version: int
    created_at: datetime
    updated_at: datetime

    # Derived from the status flow
    next_status: Optional[MissionStatus] = None
    next_action_label: Optional[str] = None

    class Config:
        from_attributes = True


class AdvanceRequest(BaseModel):
    expected_version: Optional[int] = Field(None, ge=1, description="Reject the write if the mission changed")


class StatusOverrideRequest(BaseModel):
    """Schema for the admin status override."""
    status: MissionStatus
    expected_version: Optional[int] = Field(None, ge=1)


class AssignAgentRequest(BaseModel):
    agent_id: int
    expected_version: Optional[int] = Field(None, ge=1)


class LatestPosition(BaseModel):
    lat: float
    lng: float
    timestamp: datetime


class ActiveMissionResponse(BaseModel):
    """Live map entry: one active mission and where its agent was last seen."""
    id: int
    passenger_name: str
    status: MissionStatus
    agent_id: Optional[int]
    location: Optional[LatestPosition] = None
