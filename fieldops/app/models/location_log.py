"""
Location Log database model.

Stores the GPS breadcrumb trail of an agent during a mission.
"""

from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime
from fieldops.app.db.session import Base


class LocationLog(Base):
    """
    Location Log model.

    One dispatched position sample. The timestamp is assigned by the server
    at insert time, never taken from the device.
    """
    __tablename__ = "location_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    mission_id = Column(Integer, ForeignKey('missions.id', ondelete="CASCADE"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # GPS coordinates
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)

    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<LocationLog(mission_id={self.mission_id}, lat={self.lat}, lng={self.lng})>"
