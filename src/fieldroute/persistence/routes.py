"""Database persistence for planned routes and their stops."""

from __future__ import annotations

import logging
from typing import Any

from ..db.supabase import get_supabase_client
from ..schemas.routing import RouteResult


def save_route(route: RouteResult) -> dict[str, Any] | None:
    """Save an optimized route and its stops as a planned route.

    Returns:
        The inserted ``routes`` record, or None when the database is not configured.
    """
    supabase = get_supabase_client()
    if not supabase:
        logging.warning("Supabase not configured - route will not be saved")
        return None

    response = supabase.table("routes").insert({
        "name": route.name,
        "scheduled_date": route.scheduled_date,
        "origin": route.origin,
        "total_distance": route.total_distance_km,
        "total_duration": route.total_duration_min,
        "status": "planned",
    }).execute()
    if not response.data:
        raise ValueError(f"Route '{route.name}' was not saved.")
    saved = response.data[0]

    if route.stops:
        stops = [
            {
                "route_id": saved["id"],
                "customer_id": stop.customer.customer_id,
                "customer_name": stop.customer.customer_name,
                "address": stop.customer.address,
                "stop_order": stop.order,
                "estimated_arrival": stop.estimated_arrival.isoformat(),
                "travel_time": stop.travel_time_min,
                "distance": stop.distance_km,
            }
            for stop in route.stops
        ]
        try:
            supabase.table("route_stops").insert(stops).execute()
        except Exception as e:
            logging.error(f"Failed to save stops for route {saved['id']}, removing the route: {e}")
            supabase.table("routes").delete().eq("id", saved["id"]).execute()
            raise

    logging.info(f"Route saved: {saved.get('name')} (ID: {saved['id']}) with {len(route.stops)} stops")
    return saved


def get_route_history() -> list[dict[str, Any]]:
    """Return saved routes newest first, summarised for listing."""
    supabase = get_supabase_client()
    if not supabase:
        return []

    try:
        response = (
            supabase.table("routes")
            .select("*, route_stops(count)")
            .order("scheduled_date", desc=True)
            .order("created_at", desc=True)
            .execute()
        )
    except Exception as e:
        logging.warning(f"Failed to retrieve route history from database: {e}")
        return []

    history = []
    for route in response.data or []:
        stop_counts = route.get("route_stops") or []
        history.append({
            "id": route["id"],
            "name": route.get("name") or "",
            "date": route.get("scheduled_date") or route.get("created_at"),
            "customer_count": int(stop_counts[0].get("count", 0)) if stop_counts else 0,
            "total_distance_km": route.get("total_distance"),
            "total_duration_min": route.get("total_duration"),
            "status": route.get("status") or "completed",
        })
    return history
