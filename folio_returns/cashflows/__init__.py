"""Cash-flow extraction package."""

from .extractor import (
    CAPITAL_CATEGORY,
    INCOME_CATEGORY,
    CashFlow,
    CashFlowTotals,
    cashflow_capital_flows,
    cashflow_cumulative_invested,
    cashflow_extract,
    cashflow_from_event,
    cashflow_group_by_symbol,
    cashflow_income_flows,
    cashflow_summarize,
)

__all__ = [
    "CAPITAL_CATEGORY",
    "INCOME_CATEGORY",
    "CashFlow",
    "CashFlowTotals",
    "cashflow_capital_flows",
    "cashflow_cumulative_invested",
    "cashflow_extract",
    "cashflow_from_event",
    "cashflow_group_by_symbol",
    "cashflow_income_flows",
    "cashflow_summarize",
]
