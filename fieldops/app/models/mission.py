"""
Mission database model.

A mission is a single scheduled passenger-assistance job owned by a client.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, JSON
from sqlalchemy.sql import func
from fieldops.app.db.session import Base
from fieldops.app.models.enums import MissionStatus, ServiceType, LocationType


def _values(enum_cls):
    return [member.value for member in enum_cls]


class Mission(Base):
    """
    Mission model.

    Status moves along the flow for the mission's location type (see
    `fieldops.app.domain.missions.state_machine`). `version` is bumped by
    the ORM on every UPDATE and backs the optional stale-write check.
    """
    __tablename__ = "missions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - immutable after creation
    client_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Agent assignment (optional initially, can be assigned later)
    agent_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Passenger info
    passenger_name = Column(String(255), nullable=False)
    passenger_phone = Column(String(50), nullable=True)
    passenger_email = Column(String(255), nullable=True)
    passenger_count = Column(Integer, nullable=True)

    # Group leader info (when passenger_count > 1)
    group_leader_name = Column(String(255), nullable=True)
    group_leader_phone = Column(String(50), nullable=True)
    group_leader_email = Column(String(255), nullable=True)

    # Transport identifier, the relevant one depends on location_type
    flight_number = Column(String(50), nullable=True)
    train_number = Column(String(50), nullable=True)
    ship_name = Column(String(255), nullable=True)

    # Schedule and locations
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    pickup_location = Column(String(500), nullable=False)
    dropoff_location = Column(String(500), nullable=True)

    # Service configuration
    service_type = Column(Enum(ServiceType, values_callable=_values), nullable=False)
    location_type = Column(
        Enum(LocationType, values_callable=_values),
        default=LocationType.AIRPORT,
        nullable=False
    )

    # Status
    status = Column(
        Enum(MissionStatus, values_callable=_values),
        default=MissionStatus.SCHEDULED,
        nullable=False,
        index=True
    )

    # Pricing (cents)
    quoted_price = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=True)

    # Ordered list of {storage_id, file_name, file_type, uploaded_at}
    attachments = Column(JSON, nullable=False, default=list)

    notes = Column(Text, nullable=True)

    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Mission(id={self.id}, client_id={self.client_id}, status='{self.status.value}')>"
