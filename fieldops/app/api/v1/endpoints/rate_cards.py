"""
Rate Card and Pricing API Endpoints.

Admins manage rate cards; admins and clients request price quotes.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.app.db.session import get_db
from fieldops.app.core.dependencies import get_current_user
from fieldops.app.core.guards import require_admin, require_role
from fieldops.app.domain.pricing.calculator import PricingCalculator
from fieldops.app.domain.pricing.rate_card_service import RateCardService
from fieldops.app.models.enums import UserRole
from fieldops.app.schemas.pricing import QuoteRequest, QuoteResponse
from fieldops.app.schemas.rate_card import RateCardCreate, RateCardUpdate, RateCardResponse, SeedResponse
from fieldops.app.services.audit import log_event, AuditAction

admin_router = APIRouter(prefix="/admin/rate-cards", tags=["Admin - Rate Cards"])
router = APIRouter(tags=["Pricing"])


@admin_router.get("", response_model=List[RateCardResponse])
async def list_rate_cards(
    client_id: Optional[int] = Query(None, description="Only active cards of this client"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All rate cards, or the active cards of one client."""
    if client_id is not None:
        return await RateCardService.list_by_client(db, client_id)
    return await RateCardService.list_all(db)


@admin_router.post("", response_model=RateCardResponse, status_code=status.HTTP_201_CREATED)
async def create_rate_card(
    rate_card_data: RateCardCreate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    rate_card = await RateCardService.create(db, **rate_card_data.model_dump())

    await log_event(
        db=db,
        action=AuditAction.RATE_CARD_CREATED,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="rate_card",
        target_id=rate_card.id,
        metadata={"name": rate_card.name, "client_id": rate_card.client_id}
    )
    return rate_card


@admin_router.post("/seed", response_model=SeedResponse)
async def seed_rate_cards(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Insert the missing platform defaults; safe to call repeatedly."""
    created = await RateCardService.seed_defaults(db)

    await log_event(
        db=db,
        action=AuditAction.RATE_CARDS_SEEDED,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="rate_card",
        metadata={"created": created}
    )
    return SeedResponse(created=created)


@admin_router.patch("/{rate_card_id}", response_model=RateCardResponse)
async def update_rate_card(
    updates: RateCardUpdate,
    rate_card_id: int = Path(..., description="Rate card ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Patch a rate card; set is_active false to retire it without deleting."""
    changes = updates.model_dump(exclude_unset=True)
    rate_card = await RateCardService.update(db, rate_card_id, changes)

    await log_event(
        db=db,
        action=AuditAction.RATE_CARD_UPDATED,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="rate_card",
        target_id=rate_card.id,
        metadata={"fields": sorted(changes)}
    )
    return rate_card


@admin_router.delete("/{rate_card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rate_card(
    rate_card_id: int = Path(..., description="Rate card ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await RateCardService.delete(db, rate_card_id)

    await log_event(
        db=db,
        action=AuditAction.RATE_CARD_DELETED,
        actor_id=current_user["user_id"],
        actor_external_id=current_user["sub"],
        target_type="rate_card",
        target_id=rate_card_id
    )


@router.get("/rate-cards/defaults", response_model=List[RateCardResponse])
async def list_default_rate_cards(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active platform default rate cards."""
    return await RateCardService.list_defaults(db)


@router.post("/pricing/quote", response_model=QuoteResponse)
async def quote_price(
    quote_request: QuoteRequest,
    current_user: dict = Depends(require_role([UserRole.CLIENT, UserRole.ADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """
    Price a mission configuration.

    When no rate card applies the response carries price null and a message
    rather than an error.
    """
    if current_user["role"] == UserRole.CLIENT.value:
        client_id = current_user["user_id"]
    else:
        client_id = quote_request.client_id

    quote = await PricingCalculator.calculate_price(
        db,
        service_type=quote_request.service_type,
        location_type=quote_request.location_type,
        scheduled_at=quote_request.scheduled_at,
        passenger_count=quote_request.passenger_count,
        distance_km=quote_request.distance_km,
        client_id=client_id
    )

    return QuoteResponse(
        price=quote.price,
        breakdown=quote.breakdown,
        rate_card_id=quote.rate_card_id,
        rate_card_name=quote.rate_card_name,
        currency=quote.currency,
        message=quote.message
    )
