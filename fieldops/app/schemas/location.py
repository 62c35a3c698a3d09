"""
Location ledger Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class LocationCreate(BaseModel):
    """
    Schema for a dispatched device sample.

    No timestamp: the server stamps samples on receipt.
    """
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


class LocationResponse(BaseModel):
    id: int
    mission_id: int
    agent_id: int
    lat: float
    lng: float
    timestamp: datetime

    class Config:
        from_attributes = True
