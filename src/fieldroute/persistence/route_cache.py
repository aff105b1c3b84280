"""Route cache persistence in the ``route_cache`` table."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from supabase import Client

from ..schemas.routing import RouteResult
from ..services.routing.cache import ROUTE_CACHE_TTL, CachedRouteEntry, serialize_route
from ..services.routing.errors import CacheError
from ..services.routing.models import utcnow

TABLE = "route_cache"

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class SupabaseRouteCache:
    """Route cache shared by every API worker.

    Upserts on ``route_key`` so concurrent identical writes leave a single row
    holding the last write.
    """

    def __init__(self, client: Client, clock: Callable[[], datetime] = utcnow) -> None:
        self._client = client
        self._clock = clock

    async def get(self, key: str) -> CachedRouteEntry | None:
        now = self._clock()
        try:
            response = await asyncio.to_thread(self._select, key, now)
        except Exception as exc:
            raise CacheError(f"Failed to read cached route {key}: {exc}") from exc
        if not response.data:
            return None
        row = response.data[0]
        try:
            return CachedRouteEntry(
                key=row["route_key"],
                route_data=row["route_data"],
                distance_matrix=row.get("distance_matrix"),
                created_at=_parse_timestamp(row["created_at"]),
                expires_at=_parse_timestamp(row["expires_at"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheError(f"Cached route {key} has a malformed row: {exc}") from exc

    async def put(self, key: str, route: RouteResult, distance_matrix: Optional[str] = None) -> None:
        now = self._clock()
        record = {
            "route_key": key,
            "route_data": serialize_route(route),
            "distance_matrix": distance_matrix,
            "created_at": now.isoformat(),
            "expires_at": (now + ROUTE_CACHE_TTL).isoformat(),
        }
        try:
            await asyncio.to_thread(self._upsert, record)
        except Exception as exc:
            raise CacheError(f"Failed to cache route {key}: {exc}") from exc

    async def sweep_expired(self) -> int:
        now = self._clock()
        try:
            response = await asyncio.to_thread(self._delete_expired, now)
        except Exception as exc:
            raise CacheError(f"Failed to clear expired route cache entries: {exc}") from exc
        removed = len(response.data or [])
        if removed:
            logger.info(f"Cleared {removed} expired route cache entries")
        return removed

    def _select(self, key: str, now: datetime):
        return (
            self._client.table(TABLE)
            .select("route_key, route_data, distance_matrix, created_at, expires_at")
            .eq("route_key", key)
            .gt("expires_at", now.isoformat())
            .limit(1)
            .execute()
        )

    def _upsert(self, record: dict):
        return self._client.table(TABLE).upsert(record, on_conflict="route_key").execute()

    def _delete_expired(self, now: datetime):
        return self._client.table(TABLE).delete().lte("expires_at", now.isoformat()).execute()
