"""Shared fixtures: customers, a recording mapping provider, and an in-memory Supabase stand-in."""

from __future__ import annotations

import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import pytest

from src.fieldroute.models.domain import Customer, ServiceLocation
from src.fieldroute.services.routing.models import ProviderRoute, ProviderWaypoint

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def location(
    street: str,
    *,
    location_id: str | None = None,
    lat: float | None = None,
    lon: float | None = None,
    primary: bool = False,
    notes: str | None = None,
) -> ServiceLocation:
    return ServiceLocation(
        location_id=location_id,
        street_address=street,
        city="Springfield",
        state="IL",
        postal_code="62701",
        latitude=lat,
        longitude=lon,
        is_primary=primary,
        access_notes=notes,
    )


def customer(cid: str, *locations: ServiceLocation, name: str | None = None) -> Customer:
    return Customer(customer_id=cid, name=name or f"Customer {cid}", locations=list(locations))


class RecordingProvider:
    """Mapping provider that returns a fixed visiting order and counts calls."""

    def __init__(self, order: Sequence[int] | None = None, error: Exception | None = None) -> None:
        self.order = list(order) if order is not None else None
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    async def compute_route(self, origin: str, destinations: Sequence[str]) -> ProviderRoute:
        self.calls.append((origin, list(destinations)))
        if self.error is not None:
            raise self.error
        order = self.order if self.order is not None else list(range(len(destinations)))
        waypoints = [
            ProviderWaypoint(
                waypoint_index=index,
                estimated_arrival=T0 + timedelta(minutes=10 * (position + 1)),
                travel_time_min=10.0,
                distance_km=4.0,
            )
            for position, index in enumerate(order)
        ]
        return ProviderRoute(
            total_distance_km=4.0 * (len(order) + 1),
            total_duration_min=10.0 * (len(order) + 1),
            waypoints=waypoints,
            waypoint_order=order,
            polyline="encoded_polyline",
            bounds={"northeast": {"lat": 39.9, "lng": -89.5}, "southwest": {"lat": 39.7, "lng": -89.8}},
        )


# -----------------------------
# Supabase stand-in
# -----------------------------


class FakeResponse:
    def __init__(self, data: list[dict], count: int | None = None) -> None:
        self.data = data
        self.count = count


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list = []
        self.orders: list[tuple[str, bool]] = []
        self.row_limit: int | None = None

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.operation = "select"
        return self

    def insert(self, rows: dict | list[dict]) -> "FakeQuery":
        self.operation = "insert"
        self.payload = rows
        return self

    def upsert(self, rows: dict | list[dict], on_conflict: str | None = None) -> "FakeQuery":
        self.operation = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: _comparable(row.get(column)) > _comparable(value))
        return self

    def lte(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: _comparable(row.get(column)) <= _comparable(value))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        needle = pattern.strip("%").lower()
        self.filters.append(lambda row: needle in str(row.get(column) or "").lower())
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.row_limit = count
        return self

    def execute(self) -> FakeResponse:
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"connection to table {self.table} refused")
        rows = self.db.tables.setdefault(self.table, [])
        if self.operation == "insert":
            inserted = []
            for row in self.payload if isinstance(self.payload, list) else [self.payload]:
                record = {"id": next(self.db.ids), "created_at": T0.isoformat(), **row}
                rows.append(record)
                inserted.append(copy.deepcopy(record))
            return FakeResponse(inserted)
        if self.operation == "upsert":
            written = []
            for row in self.payload if isinstance(self.payload, list) else [self.payload]:
                existing = [r for r in rows if r.get(self.on_conflict) == row.get(self.on_conflict)]
                if existing:
                    existing[0].update(row)
                else:
                    rows.append(dict(row))
                written.append(dict(row))
            return FakeResponse(written)
        matched = [row for row in rows if all(check(row) for check in self.filters)]
        if self.operation == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse(copy.deepcopy(matched))
        for column, desc in reversed(self.orders):
            matched.sort(key=lambda row: (row.get(column) is None, str(row.get(column) or "")), reverse=desc)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return FakeResponse(copy.deepcopy(matched), count=len(matched))


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables: dict[str, list[dict]] = tables or {}
        self.failing_tables: set[str] = set()
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
