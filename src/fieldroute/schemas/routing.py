"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RouteRequest(CamelModel):
    origin: Optional[str] = Field(default=None, description="Start address; the route returns here.")
    # non-list values are rejected by RouteOptimizer
    customer_ids: Optional[Any] = Field(default=None, description="Customers to visit.")
    route_name: Optional[str] = None
    scheduled_date: Optional[str] = Field(default=None, description="ISO date the route is planned for.")


class StopCustomerModel(CamelModel):
    customer_id: str
    customer_name: str
    address: str
    location_id: Optional[str] = None
    access_notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class StopModel(CamelModel):
    order: int
    customer: StopCustomerModel
    estimated_arrival: datetime
    travel_time_min: float
    distance_km: float


class LatLngModel(CamelModel):
    lat: float
    lng: float


class BoundsModel(CamelModel):
    northeast: LatLngModel
    southwest: LatLngModel


class RouteResult(CamelModel):
    id: str
    name: str
    origin: str
    scheduled_date: str
    stops: List[StopModel]
    total_distance_km: float
    total_duration_min: float
    polyline: Optional[str] = None
    bounds: Optional[BoundsModel] = None
    optimized_order: List[int] = Field(default_factory=list)
    provider: str = "google"


class RouteOptimizationResponse(CamelModel):
    success: bool = True
    route: RouteResult


class RouteLocationModel(CamelModel):
    id: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_primary: bool = False
    access_notes: Optional[str] = None


class RouteCustomerModel(CamelModel):
    id: str
    name: str
    locations: List[RouteLocationModel]


class RouteCustomersResponse(CamelModel):
    customers: List[RouteCustomerModel]
    total: int


class RouteHistoryItem(CamelModel):
    id: Any
    name: str
    date: Optional[str] = None
    customer_count: int = 0
    total_distance_km: Optional[float] = None
    total_duration_min: Optional[float] = None
    status: str = "completed"


class RouteHistoryResponse(CamelModel):
    success: bool = True
    routes: List[RouteHistoryItem]


class SavedRouteResponse(CamelModel):
    success: bool = True
    id: Any
    name: str
    status: str


class CacheSweepResponse(CamelModel):
    removed: int
