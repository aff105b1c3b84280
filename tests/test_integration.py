import pytest
from fastapi.testclient import TestClient

from src.fieldroute.api import deps
from src.fieldroute.api.routes import health as health_module
from src.fieldroute.db import supabase as supabase_module
from src.fieldroute.data.customers_repository import InMemoryCustomerStore
from src.fieldroute.main import create_app
from src.fieldroute.persistence import routes as routes_persistence
from src.fieldroute.services.routing.cache import InMemoryRouteCache
from src.fieldroute.services.routing.directions_client import GoogleDirectionsClient
from src.fieldroute.services.routing.errors import ProviderError
from src.fieldroute.services.routing.service import RouteOptimizer

from conftest import RecordingProvider, customer, location


@pytest.fixture
def store() -> InMemoryCustomerStore:
    return InMemoryCustomerStore(
        [
            customer("a", location("1 Apple St", location_id="la", lat=39.78, lon=-89.65), name="Apple Co"),
            customer("b", location("2 Birch Ave", location_id="lb", lat=39.80, lon=-89.60), name="Birch LLC"),
            customer("c", location("3 Cedar Rd"), name="Cedar Inc"),
        ]
    )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider(order=[1, 0])


@pytest.fixture
def api_client(store, provider) -> TestClient:
    app = create_app()
    cache = InMemoryRouteCache()
    app.dependency_overrides[deps.get_customer_store] = lambda: store
    app.dependency_overrides[deps.get_route_optimizer] = lambda: RouteOptimizer(
        customer_store=store, provider=provider, cache=cache
    )
    return TestClient(app)


def test_optimize_endpoint_returns_ordered_route(api_client: TestClient, provider: RecordingProvider):
    response = api_client.post(
        "/api/routes/optimize",
        json={"origin": "1 Depot Way", "customerIds": ["a", "b"], "routeName": "Morning"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    route = payload["route"]
    assert route["name"] == "Morning"
    assert [stop["customer"]["customerId"] for stop in route["stops"]] == ["b", "a"]
    assert [stop["order"] for stop in route["stops"]] == [1, 2]
    assert route["optimizedOrder"] == [1, 0]
    assert "totalDistanceKm" in route

    again = api_client.post("/api/routes/optimize", json={"origin": "1 Depot Way", "customerIds": ["b", "a"]})
    assert again.status_code == 200
    assert again.json()["route"]["id"] == route["id"]
    assert len(provider.calls) == 1


def test_optimize_endpoint_rejects_missing_origin(api_client: TestClient):
    response = api_client.post("/api/routes/optimize", json={"customerIds": ["a"]})

    assert response.status_code == 400
    assert response.json()["detail"] == "origin required"


@pytest.mark.parametrize("customer_ids", ["a", {"id": "a"}, 7])
def test_optimize_endpoint_rejects_non_list_customer_ids(api_client: TestClient, customer_ids):
    response = api_client.post("/api/routes/optimize", json={"origin": "X", "customerIds": customer_ids})

    assert response.status_code == 400
    assert response.json()["detail"] == "customer ids required"


def test_optimize_endpoint_rejects_unknown_customers(api_client: TestClient):
    response = api_client.post("/api/routes/optimize", json={"origin": "X", "customerIds": ["nobody"]})

    assert response.status_code == 400
    assert response.json()["detail"] == "no valid customer addresses found"


def test_optimize_endpoint_reports_provider_failure(api_client: TestClient, provider: RecordingProvider):
    provider.error = ProviderError("OVER_QUERY_LIMIT")

    response = api_client.post("/api/routes/optimize", json={"origin": "X", "customerIds": ["a"]})

    assert response.status_code == 502
    assert "OVER_QUERY_LIMIT" in response.json()["detail"]


def test_route_customers_lists_only_routable(api_client: TestClient):
    response = api_client.get("/api/routes/customers")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 2
    assert [c["id"] for c in payload["customers"]] == ["a", "b"]
    assert payload["customers"][0]["locations"][0]["streetAddress"] == "1 Apple St"


def test_route_customers_search(api_client: TestClient):
    response = api_client.get("/api/routes/customers", params={"search": "birch"})

    assert [c["name"] for c in response.json()["customers"]] == ["Birch LLC"]


def test_cache_sweep_endpoint(api_client: TestClient):
    response = api_client.post("/api/routes/cache/sweep")

    assert response.status_code == 200
    assert response.json() == {"removed": 0}


def test_save_and_list_routes(api_client: TestClient, monkeypatch: pytest.MonkeyPatch, fake_supabase):
    monkeypatch.setattr(routes_persistence, "get_supabase_client", lambda: fake_supabase)
    optimized = api_client.post("/api/routes/optimize", json={"origin": "Depot", "customerIds": ["a", "b"]}).json()

    saved = api_client.post("/api/routes", json=optimized["route"])
    assert saved.status_code == 201
    assert saved.json()["status"] == "planned"

    fake_supabase.tables["routes"][0]["route_stops"] = [{"count": len(fake_supabase.tables["route_stops"])}]
    history = api_client.get("/api/routes/history")

    assert history.status_code == 200
    routes = history.json()["routes"]
    assert len(routes) == 1
    assert routes[0]["customerCount"] == 2


def test_save_route_without_database(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(routes_persistence, "get_supabase_client", lambda: None)
    optimized = api_client.post("/api/routes/optimize", json={"origin": "Depot", "customerIds": ["a"]}).json()

    response = api_client.post("/api/routes", json=optimized["route"])

    assert response.status_code == 503


def test_health_endpoints(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    assert api_client.get("/api/health").json() == {"status": "ok"}

    monkeypatch.setattr(health_module, "get_mapping_provider", lambda: GoogleDirectionsClient(api_key=""))
    provider = api_client.get("/api/health/provider").json()
    assert provider == {"service": "directions", "configured": False, "healthy": True, "mode": "synthetic"}

    monkeypatch.setattr(supabase_module, "get_supabase_client", lambda: None)
    database = api_client.get("/api/health/database").json()
    assert database["configured"] is False
