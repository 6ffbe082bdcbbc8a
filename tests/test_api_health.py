"""Tests for API health, cache statistics, and service metadata endpoints."""

from fastapi.testclient import TestClient

from folio_returns.bootstrap import bootstrap_create_application
from folio_returns.config import AppSettings


def _build_settings() -> AppSettings:
    """Create test settings object.

    Returns:
        AppSettings: Deterministic test settings for API creation.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    return AppSettings(_env_file=None, environment_name="test", default_currency="EUR")


def test_api_health_returns_success_with_cache_counts() -> None:
    """Return HTTP 200 and cache counters from the health endpoint.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = TestClient(bootstrap_create_application(_build_settings()))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "up", "cache": {"entries": 0, "in_flight": 0}}


def test_api_cache_stats_groups_entries_by_data_kind() -> None:
    """Report cached entries grouped by data kind after a stored read.

    Returns:
        None: Assertions validate cache statistics payload.

    Raises:
        AssertionError: Raised when cache statistics do not reflect reads.
    """

    client = TestClient(bootstrap_create_application(_build_settings()))
    client.post(
        "/users/u1/events",
        json={
            "event_id": "b1",
            "symbol": "SAP",
            "kind": "buy",
            "quantity": 10,
            "unit_price": 100,
            "currency": "EUR",
            "event_date": "2024-01-02",
        },
    )

    client.get("/users/u1/returns")
    response = client.get("/cache/stats")

    assert response.status_code == 200
    assert response.json()["entries_by_prefix"] == {"transactions": 1, "prices": 1, "returns": 1}
    assert response.json()["in_flight"] == 0


def test_api_index_reports_environment_and_currency() -> None:
    """Return service metadata from the index endpoint."""

    client = TestClient(bootstrap_create_application(_build_settings()))

    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {
        "service": "folio-returns",
        "status": "ready",
        "environment": "test",
        "default_currency": "EUR",
    }
