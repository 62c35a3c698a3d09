"""
Pricing Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict
from fieldops.app.models.enums import ServiceType, LocationType


class QuoteRequest(BaseModel):
    """
    Schema for a price quote.

    `client_id` is honoured for admins only; clients are always quoted
    against their own rate cards.
    """
    service_type: ServiceType
    location_type: LocationType
    scheduled_at: datetime
    passenger_count: Optional[int] = Field(None, ge=1)
    distance_km: Optional[float] = Field(None, ge=0)
    client_id: Optional[int] = None


class QuoteResponse(BaseModel):
    """price is null when no rate card covers the configuration."""
    price: Optional[int]
    breakdown: Optional[Dict[str, int]]
    rate_card_id: Optional[int] = None
    rate_card_name: Optional[str] = None
    currency: Optional[str] = None
    message: Optional[str] = None
