"""Company fundamentals (valuation, profitability, balance sheet)."""

from .financial_analyzer import (
    FinancialAnalyzer,
    FinancialDataError,
    FinancialMetrics,
    MetricsAudit,
    QuoteSummarySource,
)

__all__ = [
    "FinancialAnalyzer",
    "FinancialDataError",
    "FinancialMetrics",
    "MetricsAudit",
    "QuoteSummarySource",
]
