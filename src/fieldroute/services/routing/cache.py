"""Content-addressed cache for optimized routes."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Protocol

from pydantic import ValidationError as SchemaValidationError

from ...schemas.routing import RouteResult
from .errors import CacheError
from .models import utcnow

ROUTE_CACHE_TTL = timedelta(hours=24)

logger = logging.getLogger(__name__)


def unique_customer_ids(customer_ids: Iterable[str]) -> list[str]:
    """Drop repeated ids, keeping the first occurrence of each."""
    seen: set[str] = set()
    unique: list[str] = []
    for customer_id in customer_ids:
        if customer_id in seen:
            continue
        seen.add(customer_id)
        unique.append(customer_id)
    return unique


def compute_route_cache_key(origin: str, customer_ids: Iterable[str]) -> str:
    """Fingerprint of an origin and a customer set; request order does not matter."""
    data = f"{origin}_{'_'.join(sorted(set(customer_ids)))}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class CachedRouteEntry:
    key: str
    route_data: str
    created_at: datetime
    expires_at: datetime
    distance_matrix: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def load_route(self) -> RouteResult:
        try:
            return RouteResult.model_validate_json(self.route_data)
        except SchemaValidationError as exc:
            raise CacheError(f"Cached route {self.key} could not be decoded: {exc}") from exc


def serialize_route(route: RouteResult) -> str:
    return route.model_dump_json(by_alias=True)


class RouteCache(Protocol):
    async def get(self, key: str) -> CachedRouteEntry | None:
        ...

    async def put(self, key: str, route: RouteResult, distance_matrix: Optional[str] = None) -> None:
        ...

    async def sweep_expired(self) -> int:
        ...


class InMemoryRouteCache:
    """Process-local cache, used when no database is configured."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._entries: dict[str, CachedRouteEntry] = {}

    async def get(self, key: str) -> CachedRouteEntry | None:
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry

    async def put(self, key: str, route: RouteResult, distance_matrix: Optional[str] = None) -> None:
        now = self._clock()
        self._entries[key] = CachedRouteEntry(
            key=key,
            route_data=serialize_route(route),
            created_at=now,
            expires_at=now + ROUTE_CACHE_TTL,
            distance_matrix=distance_matrix,
        )

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Cleared {len(expired)} expired route cache entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
