"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from ...config import settings
from ...persistence.routes import get_route_history, save_route
from ...schemas.routing import (
    CacheSweepResponse,
    RouteCustomerModel,
    RouteCustomersResponse,
    RouteHistoryItem,
    RouteHistoryResponse,
    RouteLocationModel,
    RouteOptimizationResponse,
    RouteRequest,
    RouteResult,
    SavedRouteResponse,
)
from ...services.routing.errors import CacheError, ProviderError
from ...services.routing.service import list_routable_customers
from ..deps import CustomerStoreDep, OptimizerDep

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=RouteOptimizationResponse, status_code=status.HTTP_200_OK)
async def optimize(payload: RouteRequest, optimizer: OptimizerDep) -> RouteOptimizationResponse:
    try:
        route = await optimizer.optimize(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Route optimization failed upstream ({exc.status}): {exc}",
        ) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc
    return RouteOptimizationResponse(route=route)


@router.get("/customers", response_model=RouteCustomersResponse, status_code=status.HTTP_200_OK)
async def route_customers(
    store: CustomerStoreDep,
    search: str | None = Query(default=None, description="Case-insensitive name filter"),
    limit: int | None = Query(default=None, ge=1, le=500),
) -> RouteCustomersResponse:
    """Customers that can be placed on a route."""
    customers = await list_routable_customers(
        store, search=search, limit=limit or settings.route_customers_default_limit
    )
    return RouteCustomersResponse(
        customers=[
            RouteCustomerModel(
                id=customer.customer_id,
                name=customer.name,
                locations=[
                    RouteLocationModel(
                        id=location.location_id,
                        street_address=location.street_address,
                        city=location.city,
                        state=location.state,
                        postal_code=location.postal_code,
                        latitude=location.latitude,
                        longitude=location.longitude,
                        is_primary=location.is_primary,
                        access_notes=location.access_notes,
                    )
                    for location in customer.locations
                ],
            )
            for customer in customers
        ],
        total=len(customers),
    )


@router.get("/history", response_model=RouteHistoryResponse, status_code=status.HTTP_200_OK)
def route_history() -> RouteHistoryResponse:
    return RouteHistoryResponse(routes=[RouteHistoryItem(**item) for item in get_route_history()])


@router.post("", response_model=SavedRouteResponse, status_code=status.HTTP_201_CREATED)
def create_route(route: RouteResult) -> SavedRouteResponse:
    """Save an optimized route as a planned route."""
    try:
        saved = save_route(route)
    except Exception as exc:
        logging.exception(f"Error saving route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save route: {str(exc)}",
        ) from exc
    if saved is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Route storage is not configured.",
        )
    return SavedRouteResponse(id=saved["id"], name=saved.get("name") or route.name, status=saved.get("status") or "planned")


@router.post("/cache/sweep", response_model=CacheSweepResponse, status_code=status.HTTP_200_OK)
async def sweep_route_cache(optimizer: OptimizerDep) -> CacheSweepResponse:
    try:
        removed = await optimizer.cleanup_cache()
    except CacheError as exc:
        logging.error(f"Route cache sweep failed: {exc}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CacheSweepResponse(removed=removed)
