"""HTTP client for the Google Directions waypoint optimization endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence

import httpx

from ...config import settings
from .errors import ProviderError
from .models import ProviderRoute, ProviderWaypoint, utcnow

# Directions API accepts at most 25 intermediate waypoints per request.
MAX_WAYPOINTS = 25

logger = logging.getLogger(__name__)


class GoogleDirectionsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        travel_mode: str | None = None,
        timeout: float | None = None,
        fallback_stop_minutes: float | None = None,
        fallback_stop_distance_km: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.base_url = (base_url or settings.google_maps_base_url).rstrip("/")
        self.travel_mode = travel_mode or settings.travel_mode
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.fallback_stop_minutes = (
            fallback_stop_minutes if fallback_stop_minutes is not None else settings.fallback_stop_minutes
        )
        self.fallback_stop_distance_km = (
            fallback_stop_distance_km
            if fallback_stop_distance_km is not None
            else settings.fallback_stop_distance_km
        )
        self._transport = transport
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def compute_route(self, origin: str, destinations: Sequence[str]) -> ProviderRoute:
        """Order ``destinations`` into a circular route starting and ending at ``origin``.

        Without credentials a synthetic estimate is returned instead: every stop
        costs the same fixed time and distance and the input order is kept.
        """
        if not destinations:
            raise ValueError("At least one destination is required.")
        if not self.configured:
            logger.warning("Directions API key not configured, using synthetic route estimate")
            return self.synthetic_route(destinations)
        if len(destinations) > MAX_WAYPOINTS:
            raise ProviderError(
                "MAX_WAYPOINTS_EXCEEDED",
                f"Directions API supports at most {MAX_WAYPOINTS} waypoints, got {len(destinations)}.",
            )

        departure = self._clock()
        data = await self.request_directions(origin, destinations)
        return parse_directions_response(data, len(destinations), departure)

    async def request_directions(self, origin: str, destinations: Sequence[str]) -> dict:
        """Call the Directions endpoint and return the raw payload, raising ``ProviderError`` unless status is OK."""
        params = {
            "origin": origin,
            "destination": origin,
            "waypoints": "optimize:true|" + "|".join(destinations),
            "mode": self.travel_mode,
            "key": self.api_key,
        }
        url = f"{self.base_url}/directions/json"

        async with self._get_client() as client:
            try:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(f"Directions request failed with HTTP {exc.response.status_code}")
                raise ProviderError(f"HTTP_{exc.response.status_code}") from exc
            except httpx.TimeoutException as exc:
                logger.error(f"Directions request timed out after {self.timeout}s")
                raise ProviderError("TIMEOUT", f"Directions request timed out after {self.timeout}s") from exc
            except httpx.HTTPError as exc:
                logger.error(f"Directions request failed: {exc}")
                raise ProviderError("REQUEST_FAILED", f"Directions request failed: {exc}") from exc
            except ValueError as exc:
                raise ProviderError("INVALID_RESPONSE", "Directions response was not valid JSON.") from exc

        status = data.get("status")
        if status != "OK":
            message = data.get("error_message") or f"Directions API error: {status}"
            logger.error(message)
            raise ProviderError(str(status), message)
        return data

    def synthetic_route(self, destinations: Sequence[str]) -> ProviderRoute:
        departure = self._clock()
        per_stop = timedelta(minutes=self.fallback_stop_minutes)
        waypoints = [
            ProviderWaypoint(
                waypoint_index=index,
                estimated_arrival=departure + per_stop * (index + 1),
                travel_time_min=self.fallback_stop_minutes,
                distance_km=self.fallback_stop_distance_km,
            )
            for index in range(len(destinations))
        ]
        return ProviderRoute(
            total_distance_km=self.fallback_stop_distance_km * len(destinations),
            total_duration_min=self.fallback_stop_minutes * len(destinations),
            waypoints=waypoints,
            waypoint_order=list(range(len(destinations))),
            polyline=None,
            bounds=None,
            provider="synthetic",
        )


def parse_directions_response(data: dict, destination_count: int, departure: datetime) -> ProviderRoute:
    """Convert a successful Directions payload into a ``ProviderRoute``.

    Leg ``i`` ends at the ``i``-th visited waypoint; the final leg is the
    return to the origin and only contributes to the totals.
    """
    routes = data.get("routes") or []
    if not routes:
        raise ProviderError("ZERO_RESULTS", "Directions response contained no routes.")
    route = routes[0]
    legs = route.get("legs") or []
    waypoint_order = list(route.get("waypoint_order") or range(destination_count))

    if len(waypoint_order) != destination_count or len(legs) < destination_count:
        raise ProviderError(
            "INVALID_RESPONSE",
            f"Expected {destination_count} waypoints, got order of {len(waypoint_order)} and {len(legs)} legs.",
        )
    if sorted(waypoint_order) != list(range(destination_count)):
        raise ProviderError("INVALID_RESPONSE", f"Waypoint order {waypoint_order} is not a permutation.")

    waypoints: list[ProviderWaypoint] = []
    elapsed_seconds = 0.0
    for position, waypoint_index in enumerate(waypoint_order):
        leg = legs[position]
        duration_s = _leg_value(leg, "duration")
        distance_m = _leg_value(leg, "distance")
        elapsed_seconds += duration_s
        waypoints.append(
            ProviderWaypoint(
                waypoint_index=waypoint_index,
                estimated_arrival=departure + timedelta(seconds=elapsed_seconds),
                travel_time_min=round(duration_s / 60.0, 2),
                distance_km=round(distance_m / 1000.0, 3),
            )
        )

    total_distance_m = sum(_leg_value(leg, "distance") for leg in legs)
    total_duration_s = sum(_leg_value(leg, "duration") for leg in legs)
    polyline = (route.get("overview_polyline") or {}).get("points")

    return ProviderRoute(
        total_distance_km=round(total_distance_m / 1000.0, 3),
        total_duration_min=round(total_duration_s / 60.0, 2),
        waypoints=waypoints,
        waypoint_order=waypoint_order,
        polyline=polyline,
        bounds=route.get("bounds") or None,
        provider="google",
    )


def _leg_value(leg: dict[str, Any], field: str) -> float:
    value = (leg.get(field) or {}).get("value")
    return float(value) if value is not None else 0.0


async def check_health(client: GoogleDirectionsClient | None = None) -> dict:
    """Report whether the Directions API is configured and answering."""
    client = client or GoogleDirectionsClient()
    if not client.configured:
        return {"configured": False, "healthy": True, "mode": "synthetic"}
    try:
        await client.request_directions("Times Square, New York, NY", ["Central Park, New York, NY"])
        return {"configured": True, "healthy": True, "mode": "google"}
    except ProviderError as exc:
        return {"configured": True, "healthy": False, "mode": "google", "error": exc.status}
