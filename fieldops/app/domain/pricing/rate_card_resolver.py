"""
Rate Card Resolver.

Responsible for determining the applicable rate card for a quote.
Follows priority:
1. Active client-specific card for (client, service type, location type)
2. Active platform default (client_id is null) for (service type, location type)
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fieldops.app.models.enums import ServiceType, LocationType
from fieldops.app.models.rate_card import RateCard


class RateCardResolver:

    @staticmethod
    async def resolve(
        db: AsyncSession,
        service_type: ServiceType,
        location_type: LocationType,
        client_id: Optional[int] = None
    ) -> Optional[RateCard]:
        """
        Find the rate card that prices this service configuration.

        validFrom/validUntil are not evaluated. First match (lowest id) wins
        within a tier.

        Returns:
            The matching RateCard, or None when no price is available.
        """
        if client_id is not None:
            client_rate = await RateCardResolver._first_active(
                db, service_type, location_type, RateCard.client_id == client_id
            )
            if client_rate:
                return client_rate

        # Fall back to platform default
        return await RateCardResolver._first_active(
            db, service_type, location_type, RateCard.client_id.is_(None)
        )

    @staticmethod
    async def _first_active(db, service_type, location_type, owner_clause) -> Optional[RateCard]:
        query = select(RateCard).where(
            owner_clause,
            RateCard.service_type == ServiceType(service_type),
            RateCard.location_type == LocationType(location_type),
            RateCard.is_active == True
        ).order_by(RateCard.id.asc()).limit(1)

        result = await db.execute(query)
        return result.scalar_one_or_none()
