"""
Database seeding script for the platform default rate cards.

Creates the six default rate cards (airport, train station, port and
transfer services). Safe to run repeatedly: cards that already exist by
name are skipped.
"""

import asyncio

from fieldops.app.db.session import AsyncSessionLocal, engine, Base
from fieldops.app.domain.pricing.rate_card_service import RateCardService, DEFAULT_RATE_CARDS
from fieldops.app.models.user import User  # noqa: F401 (registers the table)
from fieldops.app.models.rate_card import RateCard  # noqa: F401


async def seed_rate_cards():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("Seeding default rate cards...")
        created = await RateCardService.seed_defaults(db)

    skipped = len(DEFAULT_RATE_CARDS) - created
    print(f"Created {created} rate card(s), {skipped} already present")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_rate_cards())
