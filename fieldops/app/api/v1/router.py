"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fieldops.app.api.v1.endpoints import (
    users, missions, agent_missions, admin_missions, rate_cards, storage
)

router = APIRouter()

# Identity sync, onboarding and admin user listings
router.include_router(users.identity_router)
router.include_router(users.router)
router.include_router(users.admin_router)

# Missions
router.include_router(missions.router)
router.include_router(agent_missions.router)
router.include_router(admin_missions.router)

# Pricing
router.include_router(rate_cards.admin_router)
router.include_router(rate_cards.router)

# Uploads
router.include_router(storage.router)
