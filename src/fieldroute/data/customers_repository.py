"""Data access helpers for loading customer and service location information."""

from __future__ import annotations

import csv
import functools
from pathlib import Path
from typing import Iterable, Optional, Protocol

from ..config import settings
from ..models.domain import Customer, ServiceLocation

_TRUE_VALUES = {"1", "true", "yes", "y", "t"}


class CustomerStore(Protocol):
    async def get_customer_by_id(self, customer_id: str) -> Customer | None:
        ...

    async def list_customers(self, search: str | None = None, limit: int | None = None) -> list[Customer]:
        ...


class InMemoryCustomerStore:
    """Customer store backed by a dictionary keyed by customer id."""

    def __init__(self, customers: Iterable[Customer] = ()) -> None:
        self._customers: dict[str, Customer] = {customer.customer_id: customer for customer in customers}

    async def get_customer_by_id(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)

    async def list_customers(self, search: str | None = None, limit: int | None = None) -> list[Customer]:
        customers = sorted(self._customers.values(), key=lambda customer: customer.name.lower())
        if search:
            needle = search.strip().lower()
            customers = [customer for customer in customers if needle in customer.name.lower()]
        if limit is not None:
            customers = customers[:limit]
        return customers


def _coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value.replace(",", ""))
    except ValueError as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


@functools.lru_cache(maxsize=1)
def load_customers(source: Optional[Path] = None) -> tuple[Customer, ...]:
    """Load customers from the configured CSV file.

    Each row describes one service location; rows sharing a customer id are
    grouped under a single customer in file order.
    """

    csv_path = source or settings.customer_file
    if not csv_path.exists():
        raise FileNotFoundError(f"Customer file not found: {csv_path}")

    customers: dict[str, Customer] = {}
    with csv_path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Customer file '{csv_path}' is missing a header row.")
        for row in reader:
            customer_id = _clean(row.get("customer_id") or row.get("CustomerId"))
            if not customer_id:
                continue  # ignore records without an owner
            customer = customers.get(customer_id)
            if customer is None:
                name = _clean(row.get("customer_name") or row.get("CustomerName")) or customer_id
                customer = customers[customer_id] = Customer(customer_id=customer_id, name=name)
            street = _clean(row.get("street_address"))
            formatted = _clean(row.get("formatted_address"))
            if not street and not formatted:
                continue
            customer.locations.append(
                ServiceLocation(
                    location_id=_clean(row.get("location_id")),
                    street_address=street,
                    city=_clean(row.get("city")),
                    state=_clean(row.get("state")),
                    postal_code=_clean(row.get("postal_code")),
                    latitude=_coerce_float(row.get("latitude")),
                    longitude=_coerce_float(row.get("longitude")),
                    is_primary=(row.get("is_primary") or "").strip().lower() in _TRUE_VALUES,
                    access_notes=_clean(row.get("access_notes")),
                    formatted_address=formatted,
                )
            )
    return tuple(customers.values())
