"""
Rate Card administration.

Manual CRUD for admins plus seeding of the platform defaults.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fieldops.app.core.exceptions import NotFoundError, ValidationError
from fieldops.app.models.enums import ServiceType, LocationType, UserRole
from fieldops.app.models.rate_card import RateCard
from fieldops.app.models.user import User


# Prices in cents (EUR)
DEFAULT_RATE_CARDS = (
    {
        "name": "Airport Meet & Greet",
        "description": "Standard airport welcome service",
        "service_type": ServiceType.MEET_AND_GREET,
        "location_type": LocationType.AIRPORT,
        "base_price": 5500,
        "per_passenger_price": 1000,
        "night_surcharge_percent": 20,
        "weekend_surcharge_percent": 10,
    },
    {
        "name": "Airport VIP",
        "description": "Premium VIP airport service with lounge access",
        "service_type": ServiceType.VIP,
        "location_type": LocationType.AIRPORT,
        "base_price": 15000,
        "per_passenger_price": 3000,
        "night_surcharge_percent": 25,
        "weekend_surcharge_percent": 15,
    },
    {
        "name": "Airport Group",
        "description": "Group assistance at airport",
        "service_type": ServiceType.GROUP,
        "location_type": LocationType.AIRPORT,
        "base_price": 8000,
        "per_passenger_price": 800,
        "minimum_price": 8000,
        "night_surcharge_percent": 20,
        "weekend_surcharge_percent": 10,
    },
    {
        "name": "Train Station Assistance",
        "description": "Meet & greet at train station",
        "service_type": ServiceType.TRAIN_STATION,
        "location_type": LocationType.TRAIN_STATION,
        "base_price": 4500,
        "per_passenger_price": 800,
        "night_surcharge_percent": 20,
        "weekend_surcharge_percent": 10,
    },
    {
        "name": "Port/Cruise Assistance",
        "description": "Welcome service at cruise port",
        "service_type": ServiceType.PORT,
        "location_type": LocationType.PORT,
        "base_price": 6000,
        "per_passenger_price": 1000,
        "night_surcharge_percent": 20,
        "weekend_surcharge_percent": 10,
    },
    {
        "name": "Standard Transfer",
        "description": "Vehicle transfer service",
        "service_type": ServiceType.TRANSFER,
        "location_type": LocationType.ADDRESS,
        "base_price": 4000,
        "per_km_price": 200,
        "minimum_price": 4000,
        "night_surcharge_percent": 25,
        "weekend_surcharge_percent": 15,
    },
)

# Fields an admin may change after creation; scope is fixed
UPDATABLE_FIELDS = frozenset({
    "name", "description", "base_price", "per_passenger_price", "per_km_price",
    "minimum_price", "night_surcharge_percent", "weekend_surcharge_percent",
    "holiday_surcharge_percent", "is_active", "valid_from", "valid_until",
})


class RateCardService:

    @staticmethod
    async def get(db: AsyncSession, rate_card_id: int) -> RateCard:
        rate_card = await db.get(RateCard, rate_card_id)
        if not rate_card:
            raise NotFoundError("Rate card", rate_card_id)
        return rate_card

    @staticmethod
    async def create(db: AsyncSession, **fields) -> RateCard:
        """
        Create an active rate card.

        Raises:
            NotFoundError: client_id does not reference a client
            ValidationError: validity window is inverted
        """
        client_id = fields.get("client_id")
        if client_id is not None:
            client = await db.get(User, client_id)
            if not client or client.role != UserRole.CLIENT:
                raise NotFoundError("Client", client_id)

        _check_validity_window(fields.get("valid_from"), fields.get("valid_until"))

        rate_card = RateCard(is_active=True, **fields)
        db.add(rate_card)
        await db.commit()
        await db.refresh(rate_card)
        return rate_card

    @staticmethod
    async def update(db: AsyncSession, rate_card_id: int, updates: Dict[str, Any]) -> RateCard:
        """Patch the given fields; unknown or scope fields are rejected."""
        rate_card = await RateCardService.get(db, rate_card_id)

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        _check_validity_window(
            updates.get("valid_from", rate_card.valid_from),
            updates.get("valid_until", rate_card.valid_until)
        )

        for key, value in updates.items():
            setattr(rate_card, key, value)

        await db.commit()
        await db.refresh(rate_card)
        return rate_card

    @staticmethod
    async def delete(db: AsyncSession, rate_card_id: int) -> None:
        rate_card = await RateCardService.get(db, rate_card_id)
        await db.delete(rate_card)
        await db.commit()

    @staticmethod
    async def list_defaults(db: AsyncSession) -> list[RateCard]:
        """Active platform defaults."""
        result = await db.execute(
            select(RateCard).where(
                RateCard.client_id.is_(None),
                RateCard.is_active == True
            ).order_by(RateCard.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_by_client(db: AsyncSession, client_id: int) -> list[RateCard]:
        """Active client-specific cards."""
        result = await db.execute(
            select(RateCard).where(
                RateCard.client_id == client_id,
                RateCard.is_active == True
            ).order_by(RateCard.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_all(db: AsyncSession) -> list[RateCard]:
        result = await db.execute(select(RateCard).order_by(RateCard.id))
        return list(result.scalars().all())

    @staticmethod
    async def seed_defaults(db: AsyncSession) -> int:
        """
        Insert the platform default cards that are not present yet.

        Matching is by name among platform defaults, so running it twice
        creates nothing the second time.

        Returns:
            Number of cards created
        """
        result = await db.execute(select(RateCard.name).where(RateCard.client_id.is_(None)))
        existing = set(result.scalars().all())

        created = 0
        for rate in DEFAULT_RATE_CARDS:
            if rate["name"] in existing:
                continue
            db.add(RateCard(is_active=True, **rate))
            created += 1

        await db.commit()
        return created


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_validity_window(valid_from, valid_until) -> None:
    if valid_from and valid_until and _as_utc(valid_until) < _as_utc(valid_from):
        raise ValidationError("valid_until must not be before valid_from", field="valid_until")
