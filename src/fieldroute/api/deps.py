"""FastAPI dependencies wiring the route optimizer to its collaborators."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ..config import settings
from ..data.customers_repository import CustomerStore, InMemoryCustomerStore, load_customers
from ..db.supabase import get_supabase_client
from ..persistence.customers import SupabaseCustomerStore
from ..persistence.route_cache import SupabaseRouteCache
from ..services.routing.cache import InMemoryRouteCache, RouteCache
from ..services.routing.directions_client import GoogleDirectionsClient
from ..services.routing.service import RouteOptimizer


@lru_cache()
def get_customer_store() -> CustomerStore:
    supabase = get_supabase_client()
    if supabase:
        return SupabaseCustomerStore(supabase)
    if settings.customer_file.exists():
        customers = load_customers(settings.customer_file)
        logging.info(f"Loaded {len(customers)} customers from {settings.customer_file}")
        return InMemoryCustomerStore(customers)
    logging.warning("No customer source configured - customer lookups will find nothing")
    return InMemoryCustomerStore()


@lru_cache()
def get_route_cache() -> RouteCache:
    supabase = get_supabase_client()
    if supabase:
        return SupabaseRouteCache(supabase)
    logging.info("Supabase not configured - optimized routes are cached in memory")
    return InMemoryRouteCache()


@lru_cache()
def get_mapping_provider() -> GoogleDirectionsClient:
    return GoogleDirectionsClient()


def get_route_optimizer(
    customer_store: Annotated[CustomerStore, Depends(get_customer_store)],
    provider: Annotated[GoogleDirectionsClient, Depends(get_mapping_provider)],
    cache: Annotated[RouteCache, Depends(get_route_cache)],
) -> RouteOptimizer:
    return RouteOptimizer(customer_store=customer_store, provider=provider, cache=cache)


OptimizerDep = Annotated[RouteOptimizer, Depends(get_route_optimizer)]
CustomerStoreDep = Annotated[CustomerStore, Depends(get_customer_store)]
