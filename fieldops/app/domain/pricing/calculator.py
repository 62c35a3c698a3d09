"""
Pricing Calculator.

Computes a quoted price in integer cents from the resolved rate card.

Order of operations (each surcharge is computed on the running price):
1. base price
2. + additional passengers (the first passenger is covered by the base)
3. + distance
4. + night surcharge (22:00-06:00 local)
5. + weekend surcharge (Saturday, Sunday local)
6. floor at the minimum price

The holiday surcharge and the validity window are stored on rate cards but
not evaluated here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Dict
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.core.config import settings
from fieldops.app.domain.pricing.rate_card_resolver import RateCardResolver
from fieldops.app.models.enums import ServiceType, LocationType
from fieldops.app.models.rate_card import RateCard

NO_RATE_CARD_MESSAGE = "No rate card found for this service configuration"

NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6
WEEKEND_DAYS = frozenset({5, 6})  # datetime.weekday(): Saturday, Sunday


@dataclass
class PriceQuote:
    """Result of a price calculation; price is None when no rate card applies."""
    price: Optional[int]
    breakdown: Optional[Dict[str, int]] = None
    rate_card_id: Optional[int] = None
    rate_card_name: Optional[str] = None
    currency: Optional[str] = None
    message: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.price is not None


def round_cents(amount: Decimal) -> int:
    """Round half away from zero to whole cents."""
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_of(price: int, percent: int) -> int:
    return round_cents(Decimal(price) * Decimal(percent) / Decimal(100))


def to_pricing_local(scheduled_at: datetime) -> datetime:
    """
    Wall-clock time used for surcharges.

    Aware datetimes are converted to the pricing timezone; naive ones are
    taken as already being local.
    """
    if scheduled_at.tzinfo is None:
        return scheduled_at
    return scheduled_at.astimezone(ZoneInfo(settings.pricing_timezone))


def is_night(local_time: datetime) -> bool:
    return local_time.hour >= NIGHT_START_HOUR or local_time.hour < NIGHT_END_HOUR


def is_weekend(local_time: datetime) -> bool:
    return local_time.weekday() in WEEKEND_DAYS


def price_with_rate_card(
    rate_card: RateCard,
    scheduled_at: datetime,
    passenger_count: Optional[int] = None,
    distance_km: Optional[float] = None
) -> PriceQuote:
    """Apply a rate card to one mission configuration."""
    price = rate_card.base_price
    breakdown = {"base": rate_card.base_price}

    passenger_count = passenger_count if passenger_count is not None else 1
    if rate_card.per_passenger_price and passenger_count > 1:
        passenger_charge = rate_card.per_passenger_price * (passenger_count - 1)
        price += passenger_charge
        breakdown["additionalPassengers"] = passenger_charge

    if rate_card.per_km_price and distance_km:
        distance_charge = round_cents(Decimal(rate_card.per_km_price) * Decimal(str(distance_km)))
        price += distance_charge
        breakdown["distance"] = distance_charge

    local_time = to_pricing_local(scheduled_at)

    if rate_card.night_surcharge_percent and is_night(local_time):
        surcharge = percent_of(price, rate_card.night_surcharge_percent)
        price += surcharge
        breakdown["nightSurcharge"] = surcharge

    if rate_card.weekend_surcharge_percent and is_weekend(local_time):
        surcharge = percent_of(price, rate_card.weekend_surcharge_percent)
        price += surcharge
        breakdown["weekendSurcharge"] = surcharge

    if rate_card.minimum_price and price < rate_card.minimum_price:
        price = rate_card.minimum_price
        breakdown["minimumApplied"] = rate_card.minimum_price

    return PriceQuote(
        price=price,
        breakdown=breakdown,
        rate_card_id=rate_card.id,
        rate_card_name=rate_card.name,
        currency=settings.default_currency
    )


class PricingCalculator:

    @staticmethod
    async def calculate_price(
        db: AsyncSession,
        service_type: ServiceType,
        location_type: LocationType,
        scheduled_at: datetime,
        passenger_count: Optional[int] = None,
        distance_km: Optional[float] = None,
        client_id: Optional[int] = None
    ) -> PriceQuote:
        """
        Quote a mission.

        "No rate card" is an expected outcome and comes back as a quote with
        price None and a message, not as an exception.
        """
        rate_card = await RateCardResolver.resolve(db, service_type, location_type, client_id)

        if not rate_card:
            return PriceQuote(price=None, breakdown=None, message=NO_RATE_CARD_MESSAGE)

        return price_with_rate_card(rate_card, scheduled_at, passenger_count, distance_km)
