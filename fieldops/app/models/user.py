"""
User database model.

Users are mirrored from the external identity provider on first sync.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from fieldops.app.db.session import Base
from fieldops.app.models.enums import UserRole


class User(Base):
    """
    User model.

    Keyed by the identity provider's subject (`external_id`). The role is
    fixed at creation; later syncs only refresh email and name.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    external_id = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=False, default="")

    role = Column(Enum(UserRole, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)

    # Client company info / agent contact
    company_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    onboarding_complete = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, external_id='{self.external_id}', role='{self.role.value}')>"
