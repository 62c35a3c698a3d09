"""
Rate Card database model.

Defines pricing rules used to quote missions.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.sql import func
from fieldops.app.db.session import Base
from fieldops.app.models.enums import ServiceType, LocationType


class RateCard(Base):
    """
    Rate Card model.

    Keyed by (client_id, service_type, location_type); a null client_id is a
    platform default. Prices are integer cents. `is_active` soft-disables a
    rule without deleting it.
    """
    __tablename__ = "rate_cards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Null = platform default
    client_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    service_type = Column(Enum(ServiceType, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    location_type = Column(Enum(LocationType, values_callable=lambda e: [m.value for m in e]), nullable=False)

    # Pricing (cents)
    base_price = Column(Integer, nullable=False)
    per_passenger_price = Column(Integer, nullable=True)
    per_km_price = Column(Integer, nullable=True)
    minimum_price = Column(Integer, nullable=True)

    # Surcharges (percent, e.g. 20 for 20%)
    night_surcharge_percent = Column(Integer, nullable=True)
    weekend_surcharge_percent = Column(Integer, nullable=True)
    holiday_surcharge_percent = Column(Integer, nullable=True)  # Stored, not evaluated

    # Validity (stored, not evaluated)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<RateCard(id={self.id}, name='{self.name}', base_price={self.base_price})>"
