"""Event-log and valuation write API router composition."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, status
from fastapi.responses import JSONResponse

from folio_returns.domain import (
    DataIntegrityError,
    DuplicateEventError,
    Event,
    domain_parse_event,
    domain_parse_valuation,
)
from folio_returns.store import EventStorePort, ValuationStorePort

from ..responses import api_error_response, api_exception_response


def api_create_events_router(event_store: EventStorePort, valuation_store: ValuationStorePort) -> APIRouter:
    """Create router exposing per-user event and valuation writes.

    Every write goes through the store, which invalidates the user's cached
    metrics.

    Args:
        event_store: Writable event store.
        valuation_store: Writable valuation store.

    Returns:
        APIRouter: Router exposing `/users/{user_id}/...` write endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if event_store is None:
        raise ValueError("event_store must not be None")
    if valuation_store is None:
        raise ValueError("valuation_store must not be None")

    router = APIRouter(prefix="/users/{user_id}", tags=["events"])

    @router.post("/events")
    async def api_event_create(user_id: str, payload: dict[str, Any] = Body(...)) -> JSONResponse:
        """Append one event to a user's log."""

        try:
            event = event_store.store_add_event(user_id, domain_parse_event(payload))
        except DuplicateEventError as error:
            return api_error_response(error.error_code, str(error), status.HTTP_409_CONFLICT)
        except ValueError as error:
            return api_exception_response(error)
        return JSONResponse(content=api_serialize_event(event), status_code=status.HTTP_201_CREATED)

    @router.put("/events/{event_id}")
    async def api_event_replace(user_id: str, event_id: str, payload: dict[str, Any] = Body(...)) -> JSONResponse:
        """Replace one event wholesale; the path id wins over any body id."""

        try:
            event = event_store.store_replace_event(user_id, domain_parse_event({**payload, "event_id": event_id}))
        except (DataIntegrityError, KeyError) as error:
            return api_exception_response(error)
        return JSONResponse(content=api_serialize_event(event), status_code=status.HTTP_200_OK)

    @router.delete("/events/{event_id}")
    async def api_event_delete(user_id: str, event_id: str) -> JSONResponse:
        """Delete one event."""

        try:
            event_store.store_delete_event(user_id, event_id)
        except KeyError as error:
            return api_exception_response(error)
        return JSONResponse(content={"status": "deleted", "event_id": event_id}, status_code=status.HTTP_200_OK)

    @router.post("/valuations")
    async def api_valuation_upsert(user_id: str, payload: dict[str, Any] = Body(...)) -> JSONResponse:
        """Upsert valuation points for a symbol or, without one, the portfolio.

        Args:
            user_id: Owning user identifier.
            payload: Mapping with optional `symbol` and a `points` list.

        Returns:
            JSONResponse: Write summary or error envelope.
        """

        symbol = payload.get("symbol")
        try:
            points = tuple(domain_parse_valuation(point) for point in payload.get("points") or ())
        except DataIntegrityError as error:
            return api_exception_response(error)
        written = valuation_store.valuation_add_points(user_id, points, symbol=symbol)
        return JSONResponse(
            content={"status": "ok", "symbol": symbol, "written": written},
            status_code=status.HTTP_200_OK,
        )

    @router.post("/accounts/{symbol}")
    async def api_account_register(
        user_id: str,
        symbol: str,
        payload: dict[str, Any] | None = Body(default=None),
    ) -> JSONResponse:
        """Register an account holding, optionally with balance snapshots.

        Args:
            user_id: Owning user identifier.
            symbol: Account-holding symbol.
            payload: Optional mapping with a `balances` list.

        Returns:
            JSONResponse: Registration summary or error envelope.
        """

        try:
            balances = tuple(domain_parse_valuation(point) for point in (payload or {}).get("balances") or ())
            event_store.store_register_account(user_id, symbol)
        except (DataIntegrityError, ValueError) as error:
            return api_exception_response(error)
        written = valuation_store.valuation_add_points(user_id, balances, symbol=symbol) if balances else 0
        return JSONResponse(
            content={"status": "ok", "symbol": symbol, "balances_written": written},
            status_code=status.HTTP_201_CREATED,
        )

    return router


def api_serialize_event(event: Event) -> dict[str, object]:
    """Serialize one event to JSON payload.

    Args:
        event: Stored event.

    Returns:
        dict[str, object]: JSON-serializable event payload.
    """

    return {
        "event_id": event.event_id,
        "symbol": event.symbol,
        "kind": event.kind.value,
        "quantity": str(event.quantity),
        "unit_price": str(event.unit_price),
        "fees": str(event.fees),
        "currency": event.currency,
        "event_date": event.event_date.isoformat(),
        "amount": None if event.amount is None else str(event.amount),
        "cash_amount": str(event.cash_effect.amount),
        "notes": event.notes,
    }


__all__ = ["api_create_events_router", "api_serialize_event"]
