"""Tests for return-metrics and event-write API endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from folio_returns.api.routers import api_create_events_router
from folio_returns.bootstrap import bootstrap_create_application
from folio_returns.config import AppSettings
from folio_returns.domain import Event
from folio_returns.store import InMemoryEventStore, InMemoryValuationStore


_BUY_PAYLOAD = {
    "event_id": "b1",
    "symbol": "AAPL",
    "kind": "buy",
    "quantity": 100,
    "unit_price": 10,
    "fees": 1,
    "currency": "USD",
    "event_date": "2024-01-02",
}
_PORTFOLIO_POINTS = {
    "points": [
        {"point_date": "2024-01-02", "total_value": 1000},
        {"point_date": "2024-06-28", "total_value": 1200},
    ]
}


def _build_settings() -> AppSettings:
    """Create test settings object.

    Returns:
        AppSettings: Deterministic test settings for API creation.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    return AppSettings(_env_file=None, environment_name="test", currency_rates={"EUR/USD": 1.25})


def _build_client() -> TestClient:
    return TestClient(bootstrap_create_application(_build_settings()))


def _seed_portfolio(client: TestClient) -> None:
    assert client.post("/users/u1/events", json=_BUY_PAYLOAD).status_code == 201
    assert client.post("/users/u1/valuations", json=_PORTFOLIO_POINTS).status_code == 200


def test_api_returns_calculate_reports_metrics_for_posted_history() -> None:
    """Calculate metrics for events and valuations posted in the request body.

    Returns:
        None: Assertions validate response status and metric payload.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = _build_client()

    response = client.post(
        "/returns/calculate",
        json={
            "scope": {"kind": "symbol", "symbol": "AAPL"},
            "events": [
                _BUY_PAYLOAD,
                {
                    "event_id": "s1",
                    "symbol": "AAPL",
                    "kind": "sell",
                    "quantity": 100,
                    "unit_price": 15,
                    "fees": 1,
                    "event_date": "2024-03-01",
                },
            ],
            "valuations": [
                {"point_date": "2024-01-02", "total_value": 1000},
                {"point_date": "2024-03-01", "total_value": 1500},
            ],
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["scope"] == {"kind": "symbol", "currency": "USD", "symbol": "AAPL"}
    assert Decimal(payload["realized_pnl"]) == Decimal("498")
    assert Decimal(payload["cost_basis"]) == Decimal("0")
    assert payload["sales"][0]["event_id"] == "s1"
    assert payload["display"]["total_return"].startswith("+49.")


def test_api_returns_calculate_maps_oversold_history_to_422() -> None:
    """Return the typed data-integrity envelope for an oversold log."""

    client = _build_client()

    response = client.post(
        "/returns/calculate",
        json={
            "scope": {"kind": "symbol", "currency": "USD", "symbol": "AAPL"},
            "events": [
                _BUY_PAYLOAD,
                {
                    "event_id": "s1",
                    "symbol": "AAPL",
                    "kind": "sell",
                    "quantity": 200,
                    "unit_price": 15,
                    "event_date": "2024-03-01",
                },
            ],
            "valuations": [
                {"point_date": "2024-01-02", "total_value": 1000},
                {"point_date": "2024-03-01", "total_value": 1500},
            ],
        },
    )

    assert response.status_code == 422
    assert response.json()["status"] == "error"
    assert response.json()["code"] == "OVERSOLD_POSITION"


def test_api_returns_calculate_rejects_invalid_scope() -> None:
    """Return 400 for a symbol scope without a symbol."""

    client = _build_client()

    response = client.post("/returns/calculate", json={"scope": {"kind": "symbol"}, "events": [], "valuations": []})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_api_user_returns_serves_stored_portfolio_metrics() -> None:
    """Return metrics for a portfolio written through the API.

    Returns:
        None: Assertions validate stored-portfolio metrics and caching.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = _build_client()
    _seed_portfolio(client)

    response = client.get("/users/u1/returns")

    assert response.status_code == 200
    payload = response.json()
    assert payload["scope"]["kind"] == "portfolio"
    assert Decimal(payload["total_invested"]) == Decimal("1001")
    assert Decimal(payload["unrealized_pnl"]) == Decimal("199")
    assert client.get("/cache/stats").json()["entries_by_prefix"]["returns"] == 1


def test_api_user_returns_reflects_event_writes() -> None:
    """Recompute stored metrics after an event is added and deleted."""

    client = _build_client()
    _seed_portfolio(client)
    client.get("/users/u1/returns")

    dividend = {
        "event_id": "dv1",
        "symbol": "AAPL",
        "kind": "dividend",
        "amount": 25,
        "event_date": "2024-03-15",
    }
    assert client.post("/users/u1/events", json=dividend).status_code == 201
    with_dividend = client.get("/users/u1/returns").json()
    assert client.delete("/users/u1/events/dv1").json() == {"status": "deleted", "event_id": "dv1"}
    without_dividend = client.get("/users/u1/returns").json()

    assert Decimal(with_dividend["dividend_income"]["total"]) == Decimal("25")
    assert Decimal(with_dividend["total_pnl"]) == Decimal("224")
    assert Decimal(without_dividend["total_pnl"]) == Decimal("199")


def test_api_user_returns_supports_currency_and_time_range() -> None:
    """Convert stored data and resolve a named range against the end date."""

    client = _build_client()
    _seed_portfolio(client)

    response = client.get(
        "/users/u1/returns",
        params={"currency": "EUR", "time_range": "ytd", "end_date": "2024-06-30"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["scope"]["currency"] == "EUR"
    assert Decimal(payload["current_value"]) == Decimal("960")
    assert payload["is_inception_scope"] is True


def test_api_user_returns_error_envelopes() -> None:
    """Return typed envelopes for unknown users and inverted ranges."""

    client = _build_client()
    _seed_portfolio(client)

    unknown_user = client.get("/users/nobody/returns")
    inverted_range = client.get("/users/u1/returns", params={"start_date": "2024-06-01", "end_date": "2024-01-01"})
    bad_range = client.get("/users/u1/returns", params={"time_range": "2w"})
    bad_currency = client.get("/users/u1/returns", params={"currency": "JPY"})

    assert unknown_user.status_code == 404
    assert unknown_user.json()["code"] == "USER_NOT_FOUND"
    assert inverted_range.status_code == 400
    assert inverted_range.json()["code"] == "INVALID_DATE_RANGE"
    assert bad_range.status_code == 400
    assert bad_currency.status_code == 400


def test_api_event_writes_map_store_errors() -> None:
    """Map duplicate, unknown, and malformed event writes onto envelopes.

    Returns:
        None: Assertions validate status codes and error codes.

    Raises:
        AssertionError: Raised when write errors map to the wrong envelope.
    """

    client = _build_client()
    _seed_portfolio(client)

    duplicate = client.post("/users/u1/events", json=_BUY_PAYLOAD)
    malformed = client.post("/users/u1/events", json={**_BUY_PAYLOAD, "event_id": "b2", "quantity": -1})
    missing_replace = client.put("/users/u1/events/nope", json=_BUY_PAYLOAD)
    missing_delete = client.delete("/users/u1/events/nope")
    replaced = client.put("/users/u1/events/b1", json={**_BUY_PAYLOAD, "event_id": "ignored", "fees": 0})

    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "DUPLICATE_EVENT"
    assert malformed.status_code == 422
    assert malformed.json()["code"] == "DATA_INTEGRITY_ERROR"
    assert missing_replace.status_code == 404
    assert missing_delete.status_code == 404
    assert replaced.status_code == 200
    assert replaced.json()["event_id"] == "b1"
    assert replaced.json()["fees"] == "0"


def test_api_account_registration_enables_account_scope() -> None:
    """Register an account with balances and read its account-scope metrics."""

    client = _build_client()

    registered = client.post(
        "/users/u1/accounts/SAVINGS",
        json={"balances": [{"date": "2024-01-02", "balance": 500}, {"date": "2024-06-28", "balance": 530}]},
    )
    client.post(
        "/users/u1/events",
        json={"event_id": "d1", "symbol": "SAVINGS", "kind": "deposit", "amount": 500, "event_date": "2024-01-02"},
    )
    response = client.get("/users/u1/returns", params={"symbol": "SAVINGS"})

    assert registered.status_code == 201
    assert registered.json() == {"status": "ok", "symbol": "SAVINGS", "balances_written": 2}
    assert response.status_code == 200
    assert response.json()["scope"]["kind"] == "account"
    assert Decimal(response.json()["unrealized_pnl"]) == Decimal("30")


class _ReadOnlyEventStore(InMemoryEventStore):
    """Event store rejecting every append with a plain validation error."""

    def store_add_event(self, user_id: str, event: Event) -> Event:
        raise ValueError("event log is read-only")


def test_api_event_create_maps_only_duplicates_to_conflict() -> None:
    """Return 400 for store validation errors other than duplicate ids.

    Returns:
        None: Assertions validate the non-duplicate error envelope.

    Raises:
        AssertionError: Raised when every store error is reported as a duplicate.
    """

    application = FastAPI()
    application.include_router(api_create_events_router(_ReadOnlyEventStore(), InMemoryValuationStore()))
    client = TestClient(application)

    response = client.post("/users/u1/events", json=_BUY_PAYLOAD)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["message"] == "event log is read-only"


@pytest.mark.parametrize(
    "body",
    [
        {"scope": "AAPL", "events": [], "valuations": []},
        {"scope": {"kind": "portfolio"}, "events": [1], "valuations": []},
        {"scope": {"kind": "portfolio"}, "events": {"event_id": "b1"}, "valuations": []},
        {"scope": {"kind": "portfolio"}, "events": [], "valuations": ["2024-01-02"]},
        {"scope": {"kind": "portfolio"}, "events": [], "valuations": [], "account_balances": {"SAVINGS": "500"}},
        {"scope": {"kind": "portfolio"}, "events": [], "valuations": [], "account_symbols": "SAVINGS"},
    ],
)
def test_api_returns_calculate_rejects_malformed_body_shapes(body: dict[str, object]) -> None:
    """Return 400 instead of a server error for malformed body shapes.

    Args:
        body: Calculation body with one malformed member.

    Returns:
        None: Assertions validate the error envelope.

    Raises:
        AssertionError: Raised when a malformed body escapes as a server error.
    """

    response = _build_client().post("/returns/calculate", json=body)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_api_returns_calculate_reports_both_metric_flavors_for_bounded_range() -> None:
    """Serve in-period, cumulative, and annualized blocks for a bounded range."""

    response = _build_client().post(
        "/returns/calculate",
        json={
            "scope": {"kind": "symbol", "symbol": "AAPL"},
            "events": [_BUY_PAYLOAD],
            "valuations": [
                {"point_date": "2024-01-02", "total_value": 1000},
                {"point_date": "2024-02-01", "total_value": 1100},
                {"point_date": "2024-03-01", "total_value": 1250},
            ],
            "start_date": "2024-02-01",
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["is_inception_scope"] is False
    assert Decimal(payload["unrealized_pnl"]) == Decimal("150")
    assert Decimal(payload["inception_metrics"]["unrealized_pnl"]) == Decimal("249")
    assert payload["annualized"]["start_date"] == "2024-02-01"
