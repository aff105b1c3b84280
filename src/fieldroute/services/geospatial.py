"""Geospatial helper functions."""

from __future__ import annotations

from typing import Sequence

from shapely.geometry import MultiPoint


def coordinate_bounds(coordinates: Sequence[tuple[float, float]]) -> dict | None:
    """Return a northeast/southwest bounding box for (lat, lon) pairs."""

    if not coordinates:
        return None
    min_lon, min_lat, max_lon, max_lat = MultiPoint([(lon, lat) for lat, lon in coordinates]).bounds
    return {
        "northeast": {"lat": max_lat, "lng": max_lon},
        "southwest": {"lat": min_lat, "lng": min_lon},
    }
