"""Route optimization orchestration service."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Protocol, Sequence

from ...data.customers_repository import CustomerStore
from ...models.domain import Customer, select_service_location
from ...schemas.routing import RouteRequest, RouteResult, StopCustomerModel, StopModel
from ..geospatial import coordinate_bounds
from .cache import RouteCache, compute_route_cache_key, unique_customer_ids
from .errors import CacheError, ProviderError, ValidationError
from .models import ProviderRoute, StopCandidate, utcnow

logger = logging.getLogger(__name__)


class MappingProvider(Protocol):
    async def compute_route(self, origin: str, destinations: Sequence[str]) -> ProviderRoute:
        ...


def _validate(request: RouteRequest) -> tuple[str, list[str]]:
    origin = (request.origin or "").strip()
    if not origin:
        raise ValidationError("origin required")
    customer_ids = request.customer_ids
    if not customer_ids or not isinstance(customer_ids, (list, tuple)):
        raise ValidationError("customer ids required")
    return origin, unique_customer_ids(str(cid).strip() for cid in customer_ids)


def _stop_candidates(customers: Sequence[Customer | None]) -> list[StopCandidate]:
    candidates: list[StopCandidate] = []
    for customer in customers:
        if customer is None:
            continue
        location = select_service_location(customer.locations)
        if location is None:
            continue
        address = location.address()
        if not address:
            continue
        candidates.append(
            StopCandidate(
                customer_id=customer.customer_id,
                customer_name=customer.name,
                address=address,
                location_id=location.location_id,
                access_notes=location.access_notes,
                latitude=location.latitude,
                longitude=location.longitude,
            )
        )
    return candidates


def _build_stops(provider_route: ProviderRoute, candidates: Sequence[StopCandidate]) -> list[StopModel]:
    stops: list[StopModel] = []
    for position, waypoint in enumerate(provider_route.waypoints, start=1):
        if not 0 <= waypoint.waypoint_index < len(candidates):
            raise ProviderError(
                "INVALID_RESPONSE",
                f"Waypoint index {waypoint.waypoint_index} is outside the {len(candidates)} destinations sent.",
            )
        candidate = candidates[waypoint.waypoint_index]
        stops.append(
            StopModel(
                order=position,
                customer=StopCustomerModel(
                    customer_id=candidate.customer_id,
                    customer_name=candidate.customer_name,
                    address=candidate.address,
                    location_id=candidate.location_id,
                    access_notes=candidate.access_notes,
                    latitude=candidate.latitude,
                    longitude=candidate.longitude,
                ),
                estimated_arrival=waypoint.estimated_arrival,
                travel_time_min=waypoint.travel_time_min,
                distance_km=waypoint.distance_km,
            )
        )
    return stops


class RouteOptimizer:
    """Turns a set of customers into an ordered, time-estimated route.

    Collaborators are passed in so each can be swapped for a fake; the
    optimizer itself holds no shared state.
    """

    def __init__(
        self,
        customer_store: CustomerStore,
        provider: MappingProvider,
        cache: RouteCache,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.customer_store = customer_store
        self.provider = provider
        self.cache = cache
        self._clock = clock

    async def optimize(self, request: RouteRequest) -> RouteResult:
        origin, customer_ids = _validate(request)
        cache_key = compute_route_cache_key(origin, customer_ids)

        cached = await self._read_cache(cache_key)
        if cached is not None:
            logger.info(f"Returning cached route optimization for {len(customer_ids)} customers")
            return cached

        customers = await asyncio.gather(
            *(self.customer_store.get_customer_by_id(customer_id) for customer_id in customer_ids)
        )
        candidates = _stop_candidates(customers)
        if not candidates:
            raise ValidationError("no valid customer addresses found")
        skipped = len(customer_ids) - len(candidates)
        if skipped:
            logger.info(f"Skipped {skipped} customers without a usable address")

        destinations = [candidate.address for candidate in candidates]
        provider_route = await self.provider.compute_route(origin, destinations)
        stops = _build_stops(provider_route, candidates)

        now = self._clock()
        bounds = provider_route.bounds or coordinate_bounds(
            [(c.latitude, c.longitude) for c in candidates if c.latitude is not None and c.longitude is not None]
        )
        route = RouteResult(
            id=f"route_{uuid.uuid4().hex}",
            name=request.route_name or f"Route {now.date().isoformat()}",
            origin=origin,
            scheduled_date=request.scheduled_date or now.isoformat(),
            stops=stops,
            total_distance_km=provider_route.total_distance_km,
            total_duration_min=provider_route.total_duration_min,
            polyline=provider_route.polyline,
            bounds=bounds,
            optimized_order=provider_route.waypoint_order,
            provider=provider_route.provider,
        )

        try:
            await self.cache.put(cache_key, route)
        except CacheError as exc:
            logger.warning(f"Route cache write failed, continuing without caching: {exc}")

        logger.info(f"Route optimized: {route.name} with {len(stops)} stops via {route.provider}")
        return route

    async def _read_cache(self, cache_key: str) -> RouteResult | None:
        try:
            entry = await self.cache.get(cache_key)
            if entry is None:
                return None
            return entry.load_route()
        except CacheError as exc:
            logger.warning(f"Route cache read failed, computing a fresh route: {exc}")
            return None

    async def cleanup_cache(self) -> int:
        """Delete expired cache entries; meant for a periodic external trigger."""
        return await self.cache.sweep_expired()


async def list_routable_customers(
    store: CustomerStore,
    search: str | None = None,
    limit: int | None = None,
) -> list[Customer]:
    """Customers with at least one location that has a street address and coordinates."""
    customers = await store.list_customers(search=search, limit=limit)
    return [
        customer
        for customer in customers
        if any(location.street_address and location.has_coordinates for location in customer.locations)
    ]
