"""Customer database persistence."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from supabase import Client

from ..models.domain import Customer, ServiceLocation

CUSTOMER_COLUMNS = "id, name, customer_locations(*)"

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def customer_from_record(record: dict[str, Any]) -> Customer:
    """Build a Customer from a ``customers`` row with embedded ``customer_locations``."""
    locations = [
        ServiceLocation(
            location_id=str(loc["id"]) if loc.get("id") is not None else None,
            street_address=loc.get("street_address"),
            city=loc.get("city"),
            state=loc.get("state"),
            postal_code=loc.get("postal_code"),
            latitude=_to_float(loc.get("latitude")),
            longitude=_to_float(loc.get("longitude")),
            is_primary=bool(loc.get("is_primary")),
            access_notes=loc.get("access_notes"),
            formatted_address=loc.get("formatted_address"),
        )
        for loc in record.get("customer_locations") or []
    ]
    return Customer(customer_id=str(record["id"]), name=record.get("name") or "", locations=locations)


class SupabaseCustomerStore:
    """Reads customers and their service locations from Supabase.

    The Supabase client is blocking, so every query runs in a worker thread.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    async def get_customer_by_id(self, customer_id: str) -> Customer | None:
        response = await asyncio.to_thread(self._select_customer, customer_id)
        if not response.data:
            return None
        return customer_from_record(response.data[0])

    async def list_customers(self, search: str | None = None, limit: int | None = None) -> list[Customer]:
        response = await asyncio.to_thread(self._select_customers, search, limit)
        customers = [customer_from_record(record) for record in response.data or []]
        logger.info(f"Retrieved {len(customers)} customers from database (search={search!r}, limit={limit})")
        return customers

    def _select_customer(self, customer_id: str):
        return self._client.table("customers").select(CUSTOMER_COLUMNS).eq("id", customer_id).limit(1).execute()

    def _select_customers(self, search: str | None, limit: int | None):
        query = self._client.table("customers").select(CUSTOMER_COLUMNS)
        if search:
            query = query.ilike("name", f"%{search}%")
        query = query.order("name")
        if limit is not None:
            query = query.limit(limit)
        return query.execute()
