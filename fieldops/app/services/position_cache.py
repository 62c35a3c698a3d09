"""
Latest-position cache using Redis.

Mirrors the newest ledger sample per mission so the live map does not hit
the ledger table on every poll. The database stays the source of truth:
cache failures are logged and ignored, and readers fall back to the ledger.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any

from fieldops.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for latest positions
LATEST_POSITION_PREFIX = "location:latest:"


def _key(mission_id: int) -> str:
    return f"{LATEST_POSITION_PREFIX}{mission_id}"


async def cache_latest_position(redis, location_log) -> bool:
    """
    Store a ledger sample as the mission's latest position.

    Returns:
        True if cached, False otherwise
    """
    if redis is None:
        return False
    try:
        timestamp = location_log.timestamp
        payload = {
            "id": location_log.id,
            "mission_id": location_log.mission_id,
            "agent_id": location_log.agent_id,
            "lat": location_log.lat,
            "lng": location_log.lng,
            "timestamp": timestamp.isoformat() if isinstance(timestamp, datetime) else timestamp,
        }
        await redis.set(
            _key(location_log.mission_id),
            json.dumps(payload),
            ex=settings.location_cache_ttl_seconds
        )
        return True
    except Exception as e:
        logger.warning("Error caching latest position for mission %s: %s", location_log.mission_id, e)
        return False


async def get_cached_position(redis, mission_id: int) -> Optional[Dict[str, Any]]:
    """
    Get the cached latest position of a mission.

    Returns:
        Position dict, or None on a miss or when Redis is unavailable
    """
    if redis is None:
        return None
    try:
        raw = await redis.get(_key(mission_id))
        if not raw:
            return None
        return json.loads(raw)
    except Exception as e:
        logger.warning("Error reading cached position for mission %s: %s", mission_id, e)
        return None
