"""Return-metrics API router composition."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from folio_returns.config import AppSettings
from folio_returns.domain import (
    DataIntegrityError,
    domain_parse_date,
    domain_parse_event,
    domain_parse_valuation,
)
from folio_returns.periods import period_resolve_time_range
from folio_returns.returns import (
    DetailedReturnMetrics,
    PortfolioReturnsService,
    ReturnCalculationRequest,
    ReturnScope,
    ReturnScopeKind,
    presentation_clamp_annualized,
    presentation_format_percentage,
    returns_serialize_detailed_metrics,
)
from folio_returns.store import EventStorePort

from ..responses import api_error_response, api_exception_response


def api_create_returns_router(
    settings: AppSettings,
    returns_service: PortfolioReturnsService,
    event_store: EventStorePort,
) -> APIRouter:
    """Create router exposing stateless and stored-portfolio return metrics.

    Args:
        settings: Runtime settings used for the default currency.
        returns_service: Cached return-metrics service.
        event_store: Event store used to check user existence.

    Returns:
        APIRouter: Router exposing return endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if returns_service is None:
        raise ValueError("returns_service must not be None")
    if event_store is None:
        raise ValueError("event_store must not be None")

    router = APIRouter(tags=["returns"])

    @router.post("/returns/calculate")
    def api_returns_calculate(payload: dict[str, Any] = Body(...)) -> JSONResponse:
        """Calculate metrics from events and valuations posted in the body.

        Args:
            payload: Mapping with `scope`, `events`, `valuations`, optional
                `start_date`, `end_date`, `account_symbols`, `account_balances`,
                and `include_volatility`.

        Returns:
            JSONResponse: Detailed metrics payload or error envelope.
        """

        try:
            request = api_parse_calculation_request(payload, default_currency=settings.default_currency)
            detailed = returns_service.returns_calculate(request)
        except (DataIntegrityError, ValueError) as error:
            return api_exception_response(error)
        return JSONResponse(content=api_serialize_returns_payload(detailed), status_code=status.HTTP_200_OK)

    @router.get("/users/{user_id}/returns")
    async def api_user_returns(
        user_id: str,
        currency: str | None = Query(default=None),
        symbol: str | None = Query(default=None),
        start_date: str | None = Query(default=None),
        end_date: str | None = Query(default=None),
        time_range: str | None = Query(default=None),
        include_volatility: bool = Query(default=False),
    ) -> JSONResponse:
        """Return cached metrics for a stored portfolio or one holding.

        Args:
            user_id: Owning user identifier.
            currency: Target currency, defaults to the configured currency.
            symbol: Optional holding symbol.
            start_date: Optional inclusive ISO start date.
            end_date: Optional inclusive ISO end date.
            time_range: Optional named range (`5d`, `1m`, `6m`, `ytd`, `1y`,
                `5y`, `all`) used when `start_date` is absent.
            include_volatility: Whether to compute annualized volatility.

        Returns:
            JSONResponse: Detailed metrics payload or error envelope.
        """

        if not event_store.store_has_user(user_id):
            return api_error_response("USER_NOT_FOUND", f"user {user_id} not found", status.HTTP_404_NOT_FOUND)

        try:
            parsed_end_date = None if end_date is None else domain_parse_date(end_date)
            parsed_start_date = None if start_date is None else domain_parse_date(start_date)
            if parsed_start_date is None and time_range is not None:
                parsed_start_date = period_resolve_time_range(time_range, parsed_end_date or date.today())
            if parsed_start_date is not None and parsed_end_date is not None and parsed_start_date > parsed_end_date:
                return api_error_response(
                    "INVALID_DATE_RANGE",
                    f"start_date={parsed_start_date.isoformat()} is after end_date={parsed_end_date.isoformat()}",
                    status.HTTP_400_BAD_REQUEST,
                )
            detailed = await returns_service.returns_get_detailed(
                user_id=user_id,
                currency=currency,
                symbol=symbol,
                start_date=parsed_start_date,
                end_date=parsed_end_date,
                include_volatility=include_volatility,
            )
        except (DataIntegrityError, ValueError) as error:
            return api_exception_response(error)
        return JSONResponse(content=api_serialize_returns_payload(detailed), status_code=status.HTTP_200_OK)

    return router


def api_parse_calculation_request(payload: dict[str, Any], default_currency: str) -> ReturnCalculationRequest:
    """Parse a posted calculation body into a calculation request.

    Args:
        payload: Loosely typed request body.
        default_currency: Currency used when the scope omits one.

    Returns:
        ReturnCalculationRequest: Validated request.

    Raises:
        DataIntegrityError: Raised when an event or valuation is invalid.
        ValueError: Raised when the scope, dates, or body shape are invalid.
    """

    scope_payload = _api_require_mapping(payload.get("scope") or {}, "scope")
    scope = ReturnScope(
        kind=ReturnScopeKind(str(scope_payload.get("kind", ReturnScopeKind.PORTFOLIO.value)).lower()),
        currency=str(scope_payload.get("currency") or default_currency),
        symbol=None if scope_payload.get("symbol") is None else str(scope_payload["symbol"]),
    )
    account_balances = {
        str(symbol): tuple(
            domain_parse_valuation(_api_require_mapping(point, f"account_balances.{symbol} entry"))
            for point in _api_require_list(points, f"account_balances.{symbol}")
        )
        for symbol, points in _api_require_mapping(payload.get("account_balances") or {}, "account_balances").items()
    }
    return ReturnCalculationRequest(
        scope=scope,
        events=tuple(
            domain_parse_event(_api_require_mapping(event_payload, "events entry"))
            for event_payload in _api_require_list(payload.get("events") or [], "events")
        ),
        valuations=tuple(
            domain_parse_valuation(_api_require_mapping(point, "valuations entry"))
            for point in _api_require_list(payload.get("valuations") or [], "valuations")
        ),
        start_date=None if payload.get("start_date") is None else domain_parse_date(payload["start_date"]),
        end_date=None if payload.get("end_date") is None else domain_parse_date(payload["end_date"]),
        account_symbols=frozenset(
            str(symbol) for symbol in _api_require_list(payload.get("account_symbols") or [], "account_symbols")
        ),
        account_balances=account_balances,
        include_volatility=bool(payload.get("include_volatility", False)),
    )


def _api_require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{label} must be an object")
    return value


def _api_require_list(value: Any, label: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{label} must be a list")
    return value


def api_serialize_returns_payload(detailed: DetailedReturnMetrics) -> dict[str, object]:
    """Serialize detailed metrics with display-ready percentage strings.

    Args:
        detailed: Detailed metrics.

    Returns:
        dict[str, object]: Metrics payload plus a `display` block.
    """

    payload = returns_serialize_detailed_metrics(detailed)
    metrics = detailed.metrics
    payload["display"] = {
        "total_return": presentation_format_percentage(metrics.total_return_percentage),
        "time_weighted_return": presentation_format_percentage(
            presentation_clamp_annualized(metrics.time_weighted_return)
        ),
        "money_weighted_return": presentation_format_percentage(
            presentation_clamp_annualized(metrics.money_weighted_return)
        ),
    }
    return payload


__all__ = ["api_create_returns_router", "api_parse_calculation_request", "api_serialize_returns_payload"]
