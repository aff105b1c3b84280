"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ProviderWaypoint:
    waypoint_index: int
    estimated_arrival: datetime
    travel_time_min: float
    distance_km: float


@dataclass(slots=True)
class ProviderRoute:
    total_distance_km: float
    total_duration_min: float
    waypoints: List[ProviderWaypoint]
    waypoint_order: List[int]
    polyline: Optional[str] = None
    bounds: Optional[dict] = None
    provider: str = "google"


@dataclass(slots=True)
class StopCandidate:
    """Per-customer data captured alongside the destination list."""

    customer_id: str
    customer_name: str
    address: str
    location_id: Optional[str]
    access_notes: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
