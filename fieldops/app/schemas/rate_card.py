"""
Rate card Pydantic schemas.

All amounts are integer cents.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fieldops.app.models.enums import ServiceType, LocationType


class RateCardCreate(BaseModel):
    """Schema for creating a rate card; omit client_id for a platform default."""
    client_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    service_type: ServiceType
    location_type: LocationType
    base_price: int = Field(..., ge=0)
    per_passenger_price: Optional[int] = Field(None, ge=0)
    per_km_price: Optional[int] = Field(None, ge=0)
    minimum_price: Optional[int] = Field(None, ge=0)
    night_surcharge_percent: Optional[int] = Field(None, ge=0)
    weekend_surcharge_percent: Optional[int] = Field(None, ge=0)
    holiday_surcharge_percent: Optional[int] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class RateCardUpdate(BaseModel):
    """Schema for patching a rate card. Scope (client, service, location) is fixed."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[int] = Field(None, ge=0)
    per_passenger_price: Optional[int] = Field(None, ge=0)
    per_km_price: Optional[int] = Field(None, ge=0)
    minimum_price: Optional[int] = Field(None, ge=0)
    night_surcharge_percent: Optional[int] = Field(None, ge=0)
    weekend_surcharge_percent: Optional[int] = Field(None, ge=0)
    holiday_surcharge_percent: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class RateCardResponse(BaseModel):
    id: int
    client_id: Optional[int]
    name: str
    description: Optional[str]
    service_type: ServiceType
    location_type: LocationType
    base_price: int
    per_passenger_price: Optional[int]
    per_km_price: Optional[int]
    minimum_price: Optional[int]
    night_surcharge_percent: Optional[int]
    weekend_surcharge_percent: Optional[int]
    holiday_surcharge_percent: Optional[int]
    is_active: bool
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeedResponse(BaseModel):
    created: int
