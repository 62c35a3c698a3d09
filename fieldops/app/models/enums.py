"""
Shared enumerations.

String values are persisted and returned to clients verbatim, so they must
stay identical across the state machine, the event log and the UI.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages agents, rate cards and can override mission status
        CLIENT: Travel-service company that books missions
        AGENT: Field worker who executes missions
    """
    ADMIN = "Admin"
    CLIENT = "Client"
    AGENT = "Agent"


class ServiceType(str, enum.Enum):
    """Service a client books."""
    MEET_AND_GREET = "Meet & Greet"
    VIP = "VIP"
    GROUP = "Group"
    TRANSFER = "Transfer"
    TRAIN_STATION = "Train Station"
    PORT = "Port"


class LocationType(str, enum.Enum):
    """Kind of place the mission starts at."""
    AIRPORT = "Airport"
    TRAIN_STATION = "Train Station"
    PORT = "Port"
    ADDRESS = "Address"


class MissionStatus(str, enum.Enum):
    """Mission status enumeration."""
    SCHEDULED = "Scheduled"  # Created, not started
    ACTIVE = "Active"  # Agent on the way
    ARRIVED_AT_AIRPORT = "Arrived at Airport"
    ARRIVED_AT_STATION = "Arrived at Station"
    ARRIVED_AT_PORT = "Arrived at Port"
    PASSENGER_MET = "Passenger Met"
    LUGGAGE_COLLECTED = "Luggage Collected"
    IN_TRANSIT = "In Transit"  # Door-to-door transfers only
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"


class MissionEventType(str, enum.Enum):
    """Mission audit trail event types."""
    STATUS_CHANGE = "StatusChange"
    PHOTO_UPLOADED = "PhotoUploaded"
    NOTE = "Note"
