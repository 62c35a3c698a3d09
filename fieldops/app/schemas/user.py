"""
User and identity Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fieldops.app.models.enums import UserRole


class ClientOnboarding(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)


class AgentOnboarding(BaseModel):
    phone: str = Field(..., min_length=1, max_length=50)


class UserResponse(BaseModel):
    """Schema for a mirrored identity-provider user."""
    id: int
    external_id: str
    email: str
    name: str
    role: UserRole
    company_name: Optional[str]
    phone: Optional[str]
    onboarding_complete: bool
    created_at: datetime

    class Config:
        from_attributes = True


class WebhookAck(BaseModel):
    message: str
    user_id: Optional[int] = None
