"""FIFO lot ledger computation primitives."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from folio_returns.domain import Event, EventKind, OversoldPositionError


_ZERO = Decimal("0")

# Same-day acquisitions are booked before same-day disposals.
_EVENT_KIND_ORDER = {
    EventKind.BUY: 0,
    EventKind.BONUS: 0,
    EventKind.DEPOSIT: 0,
    EventKind.DIVIDEND: 1,
    EventKind.SELL: 2,
    EventKind.WITHDRAWAL: 2,
}


@dataclass(frozen=True)
class Lot:
    """Open cost-basis lot.

    Attributes:
        symbol: Holding symbol.
        open_quantity: Remaining open quantity.
        unit_cost: Fee-inclusive cost per unit.
        acquired_date: Acquisition date.
        source_event_id: Opening event identifier.
        original_quantity: Quantity at acquisition.
    """

    symbol: str
    open_quantity: Decimal
    unit_cost: Decimal
    acquired_date: date
    source_event_id: str
    original_quantity: Decimal

    @property
    def cost_basis(self) -> Decimal:
        """Return the cost basis still carried by the lot."""

        return self.open_quantity * self.unit_cost


@dataclass(frozen=True)
class MatchedLot:
    """One lot slice consumed by a sale.

    Attributes:
        source_event_id: Opening event identifier of the consumed lot.
        acquired_date: Acquisition date of the consumed lot.
        quantity: Consumed quantity.
        unit_cost: Lot unit cost.
        realized_gain: Gain realized on this slice.
    """

    source_event_id: str
    acquired_date: date
    quantity: Decimal
    unit_cost: Decimal
    realized_gain: Decimal


@dataclass(frozen=True)
class RealizedGainRecord:
    """Realized-gain record for one sell event.

    Attributes:
        event_id: Sell event identifier.
        symbol: Holding symbol.
        sale_date: Sale date.
        quantity: Sold quantity.
        gross_proceeds: Quantity times sale price.
        fees: Sale fees.
        net_proceeds: Gross proceeds minus fees.
        cost_basis: Cost basis released from matched lots.
        realized_gain: Net proceeds minus released cost basis.
        matched_lots: Consumed lot slices in FIFO order.
    """

    event_id: str
    symbol: str
    sale_date: date
    quantity: Decimal
    gross_proceeds: Decimal
    fees: Decimal
    net_proceeds: Decimal
    cost_basis: Decimal
    realized_gain: Decimal
    matched_lots: tuple[MatchedLot, ...]


@dataclass(frozen=True)
class LotLedgerResult:
    """Output payload for one symbol FIFO ledger computation.

    Attributes:
        symbol: Holding symbol.
        open_lots: Open lots in FIFO order.
        sales: Realized-gain records in sale order.
    """

    symbol: str
    open_lots: tuple[Lot, ...]
    sales: tuple[RealizedGainRecord, ...]

    @property
    def open_quantity(self) -> Decimal:
        """Return total open quantity."""

        return sum((lot.open_quantity for lot in self.open_lots), _ZERO)

    @property
    def cost_basis(self) -> Decimal:
        """Return total cost basis of open lots."""

        return sum((lot.cost_basis for lot in self.open_lots), _ZERO)

    @property
    def realized_gain(self) -> Decimal:
        """Return realized gain across all sales."""

        return sum((sale.realized_gain for sale in self.sales), _ZERO)

    @property
    def average_unit_cost(self) -> Decimal:
        """Return cost basis per open unit, or zero for a closed position."""

        open_quantity = self.open_quantity
        if open_quantity == _ZERO:
            return _ZERO
        return self.cost_basis / open_quantity


@dataclass
class _OpenFifoLot:
    """Mutable internal lot state used during FIFO processing."""

    source_event_id: str
    acquired_date: date
    original_quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal


def fifo_sort_events(events: Iterable[Event]) -> list[Event]:
    """Sort events into deterministic ledger processing order.

    Args:
        events: Events in any order.

    Returns:
        list[Event]: Events ordered by date, same-day kind precedence, and id.
    """

    return sorted(
        events,
        key=lambda event: (event.event_date, _EVENT_KIND_ORDER[event.kind], event.event_id),
    )


def fifo_build_lot_ledger(symbol: str, events: Iterable[Event]) -> LotLedgerResult:
    """Build the FIFO lot ledger for one symbol.

    Args:
        symbol: Holding symbol.
        events: Events for this symbol in any order.

    Returns:
        LotLedgerResult: Open lots and realized-gain records.

    Raises:
        ValueError: Raised when symbol is blank or an event belongs to another symbol.
        OversoldPositionError: Raised when a sale exceeds the open quantity.
    """

    if not symbol or not symbol.strip():
        raise ValueError("symbol must not be blank")
    normalized_symbol = symbol.strip()

    open_lots: deque[_OpenFifoLot] = deque()
    sales: list[RealizedGainRecord] = []

    for event in fifo_sort_events(events):
        if event.symbol != normalized_symbol:
            raise ValueError(f"event {event.event_id} belongs to symbol={event.symbol}, expected {normalized_symbol}")

        if event.kind in {EventKind.BUY, EventKind.BONUS}:
            if event.quantity == _ZERO:
                continue
            if event.kind == EventKind.BUY:
                unit_cost = ((event.quantity * event.unit_price) + event.fees) / event.quantity
            else:
                unit_cost = event.fees / event.quantity
            open_lots.append(
                _OpenFifoLot(
                    source_event_id=event.event_id,
                    acquired_date=event.event_date,
                    original_quantity=event.quantity,
                    remaining_quantity=event.quantity,
                    unit_cost=unit_cost,
                )
            )
        elif event.kind == EventKind.SELL:
            if event.quantity == _ZERO:
                continue
            sales.append(_fifo_consume_sale(normalized_symbol, event, open_lots))

    return LotLedgerResult(
        symbol=normalized_symbol,
        open_lots=tuple(
            Lot(
                symbol=normalized_symbol,
                open_quantity=lot.remaining_quantity,
                unit_cost=lot.unit_cost,
                acquired_date=lot.acquired_date,
                source_event_id=lot.source_event_id,
                original_quantity=lot.original_quantity,
            )
            for lot in open_lots
        ),
        sales=tuple(sales),
    )


def fifo_build_portfolio_ledgers(
    events: Iterable[Event],
    excluded_symbols: Iterable[str] = (),
) -> dict[str, LotLedgerResult]:
    """Build one FIFO ledger per symbol across a multi-symbol event log.

    Args:
        events: Events for any number of symbols.
        excluded_symbols: Symbols tracked outside the lot ledger (account holdings).

    Returns:
        dict[str, LotLedgerResult]: Ledgers keyed by symbol.

    Raises:
        OversoldPositionError: Raised when any sale exceeds its open quantity.
    """

    excluded = frozenset(excluded_symbols)
    grouped_events: dict[str, list[Event]] = {}
    for event in events:
        if event.symbol in excluded:
            continue
        grouped_events.setdefault(event.symbol, []).append(event)

    return {
        symbol: fifo_build_lot_ledger(symbol, symbol_events)
        for symbol, symbol_events in sorted(grouped_events.items())
    }


def _fifo_consume_sale(symbol: str, event: Event, open_lots: deque[_OpenFifoLot]) -> RealizedGainRecord:
    """Consume open lots oldest-first for one sale.

    Args:
        symbol: Holding symbol.
        event: Sell event with non-zero quantity.
        open_lots: Mutable FIFO queue local to the current ledger build.

    Returns:
        RealizedGainRecord: Realized-gain record for the sale.

    Raises:
        OversoldPositionError: Raised when the sale exceeds the open quantity.
    """

    available_quantity = sum((lot.remaining_quantity for lot in open_lots), _ZERO)
    if event.quantity > available_quantity:
        raise OversoldPositionError(
            symbol=symbol,
            sale_date=event.event_date.isoformat(),
            requested_quantity=event.quantity,
            available_quantity=available_quantity,
        )

    gross_proceeds = event.quantity * event.unit_price
    net_proceeds = gross_proceeds - event.fees
    net_unit_proceeds = net_proceeds / event.quantity

    matched_lots: list[MatchedLot] = []
    quantity_to_close = event.quantity
    released_cost_basis = _ZERO
    realized_gain = _ZERO

    while quantity_to_close > _ZERO:
        current_lot = open_lots[0]
        close_quantity = min(quantity_to_close, current_lot.remaining_quantity)
        slice_gain = close_quantity * (net_unit_proceeds - current_lot.unit_cost)

        matched_lots.append(
            MatchedLot(
                source_event_id=current_lot.source_event_id,
                acquired_date=current_lot.acquired_date,
                quantity=close_quantity,
                unit_cost=current_lot.unit_cost,
                realized_gain=slice_gain,
            )
        )
        released_cost_basis += close_quantity * current_lot.unit_cost
        realized_gain += slice_gain
        current_lot.remaining_quantity -= close_quantity
        quantity_to_close -= close_quantity

        if current_lot.remaining_quantity == _ZERO:
            open_lots.popleft()

    return RealizedGainRecord(
        event_id=event.event_id,
        symbol=symbol,
        sale_date=event.event_date,
        quantity=event.quantity,
        gross_proceeds=gross_proceeds,
        fees=event.fees,
        net_proceeds=net_proceeds,
        cost_basis=released_cost_basis,
        realized_gain=realized_gain,
        matched_lots=tuple(matched_lots),
    )


__all__ = [
    "Lot",
    "MatchedLot",
    "RealizedGainRecord",
    "LotLedgerResult",
    "fifo_sort_events",
    "fifo_build_lot_ledger",
    "fifo_build_portfolio_ledgers",
]
