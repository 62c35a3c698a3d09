"""
Mission event Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fieldops.app.models.enums import MissionEventType


class PhotoCreate(BaseModel):
    storage_id: str = Field(..., min_length=1, description="Id returned by the upload URL endpoint")
    note: Optional[str] = None


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1)


class MissionEventResponse(BaseModel):
    """Schema for one audit-trail entry; photo_url is resolved at read time."""
    id: int
    mission_id: int
    agent_id: int
    event_type: MissionEventType
    previous_status: Optional[str]
    new_status: Optional[str]
    photo_storage_id: Optional[str]
    photo_url: Optional[str] = None
    note: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True
