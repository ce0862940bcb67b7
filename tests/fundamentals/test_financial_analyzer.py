"""Tests for the fundamentals analyzer."""

import threading

import pytest
from market_indicators.fundamentals.financial_analyzer import (
    FINANCIAL_MODULES,
    FinancialAnalyzer,
    FinancialDataError,
    FinancialMetrics,
    QuoteSummarySource,
)


def full_summary():
    return {
        "price": {"shortName": "Toyota Motor Corp", "marketCap": 40_000_000_000_000},
        "summaryDetail": {"trailingPE": 10.5, "forwardPE": 9.0, "dividendYield": 0.025},
        "defaultKeyStatistics": {"forwardPE": 9.8, "priceToBook": 1.2},
        "financialData": {"returnOnEquity": 0.12, "earningsGrowth": 0.3},
        "balanceSheetHistory": {
            "balanceSheetStatements": [
                {"totalStockholderEquity": {"raw": 40.0, "fmt": "40"}, "totalAssets": 100.0},
            ]
        },
    }


class FakeSource(QuoteSummarySource):
    """In-memory quote-summary source keyed by symbol."""

    def __init__(self, summaries=None, errors=None):
        self.summaries = summaries or {}
        self.errors = errors or {}
        self.calls = []
        self._lock = threading.Lock()

    def fetch_quote_summary(self, symbol, modules):
        with self._lock:
            self.calls.append((symbol, list(modules)))
        if symbol in self.errors:
            raise self.errors[symbol]
        return self.summaries[symbol]


class TestMapping:
    """Tests for quote-summary field mapping."""

    def test_full_mapping(self):
        source = FakeSource({"7203.T": full_summary()})
        metrics = FinancialAnalyzer(source).get_financial_metrics("7203.T")

        assert metrics.symbol == "7203.T"
        assert metrics.company_name == "Toyota Motor Corp"
        assert metrics.market_cap == 40_000_000_000_000
        assert metrics.trailing_pe == 10.5
        assert metrics.forward_pe == 9.8
        assert metrics.price_to_book == 1.2
        assert metrics.return_on_equity == pytest.approx(12.0)
        assert metrics.earnings_growth == 0.3
        assert metrics.dividend_yield == pytest.approx(2.5)
        assert metrics.equity_ratio == pytest.approx(40.0)
        assert metrics.data_source == "yahoo-finance"
        assert metrics.last_updated

    def test_requests_all_modules(self):
        source = FakeSource({"7203.T": full_summary()})
        FinancialAnalyzer(source).get_financial_metrics("7203.T")
        assert source.calls == [("7203.T", FINANCIAL_MODULES)]

    def test_forward_pe_falls_back_to_summary_detail(self):
        summary = full_summary()
        del summary["defaultKeyStatistics"]["forwardPE"]
        metrics = FinancialAnalyzer(FakeSource()).map_quote_summary("X", summary)
        assert metrics.forward_pe == 9.0

    def test_dividend_yield_falls_back_to_trailing(self):
        summary = full_summary()
        summary["summaryDetail"] = {"trailingAnnualDividendYield": 0.031}
        metrics = FinancialAnalyzer(FakeSource()).map_quote_summary("X", summary)
        assert metrics.dividend_yield == pytest.approx(3.1)

    def test_zero_roe_is_kept(self):
        summary = full_summary()
        summary["financialData"]["returnOnEquity"] = 0
        metrics = FinancialAnalyzer(FakeSource()).map_quote_summary("X", summary)
        assert metrics.return_on_equity == 0

    def test_empty_summary(self):
        metrics = FinancialAnalyzer(FakeSource()).map_quote_summary("X", {})
        assert metrics.symbol == "X"
        assert metrics.company_name is None
        assert metrics.market_cap is None
        assert metrics.equity_ratio is None

    def test_to_dict(self):
        metrics = FinancialMetrics(symbol="X", trailing_pe=12.0)
        assert metrics.to_dict()["trailing_pe"] == 12.0


class TestEquityRatio:
    def test_plain_numbers(self):
        summary = {"balanceSheetHistory": {"balanceSheetStatements": [
            {"totalStockholderEquity": 25, "totalAssets": 200},
        ]}}
        assert FinancialAnalyzer.calculate_equity_ratio(summary) == pytest.approx(12.5)

    @pytest.mark.parametrize("statement", [
        {"totalStockholderEquity": -10, "totalAssets": 100},
        {"totalStockholderEquity": 10, "totalAssets": 0},
        {"totalStockholderEquity": {"fmt": "10"}, "totalAssets": 100},
        {"totalAssets": 100},
    ])
    def test_missing_or_non_positive(self, statement):
        summary = {"balanceSheetHistory": {"balanceSheetStatements": [statement]}}
        assert FinancialAnalyzer.calculate_equity_ratio(summary) is None

    def test_no_statements(self):
        assert FinancialAnalyzer.calculate_equity_ratio({}) is None
        assert FinancialAnalyzer.calculate_equity_ratio(
            {"balanceSheetHistory": {"balanceSheetStatements": []}}
        ) is None


class TestErrors:
    """Tests for provider error classification."""

    @pytest.mark.parametrize("error,error_type,message", [
        (RuntimeError("HTTP 404 Not Found"), "data_missing", "Symbol not found: BAD"),
        (RuntimeError("403 Forbidden"), "api_error", "API authentication error: BAD"),
        (RuntimeError("Unauthorized"), "api_error", "API authentication error: BAD"),
        (TimeoutError("Request timeout"), "api_error", "API timeout: BAD"),
        (RuntimeError("Rate limit exceeded"), "api_error", "API rate limit exceeded: BAD"),
        (RuntimeError("boom"), "api_error", "Failed to fetch financial metrics: BAD"),
    ])
    def test_classification(self, error, error_type, message):
        analyzer = FinancialAnalyzer(FakeSource(errors={"BAD": error}))
        with pytest.raises(FinancialDataError) as exc:
            analyzer.get_financial_metrics("BAD")
        assert exc.value.symbol == "BAD"
        assert exc.value.error_type == error_type
        assert str(exc.value).startswith(message)
        assert exc.value.__cause__ is error

    def test_malformed_summary(self):
        analyzer = FinancialAnalyzer(FakeSource({"ODD": {"price": "not a mapping"}}))
        with pytest.raises(FinancialDataError) as exc:
            analyzer.get_financial_metrics("ODD")
        assert exc.value.error_type == "calculation_error"


class TestBatch:
    """Tests for concurrent multi-symbol fetch."""

    def test_order_and_isolation(self):
        source = FakeSource(
            summaries={"A": full_summary(), "C": full_summary()},
            errors={"B": RuntimeError("404 Not Found")},
        )
        results = FinancialAnalyzer(source, max_workers=2).get_multiple_financial_metrics(
            ["A", "B", "C"]
        )
        assert [r.symbol if r else None for r in results] == ["A", None, "C"]

    def test_empty_batch(self):
        assert FinancialAnalyzer(FakeSource()).get_multiple_financial_metrics([]) == []

    def test_all_failed(self):
        source = FakeSource(errors={"X": RuntimeError("timeout"), "Y": RuntimeError("timeout")})
        assert FinancialAnalyzer(source).get_multiple_financial_metrics(["X", "Y"]) == [None, None]


class TestValidateMetrics:
    def test_full(self):
        metrics = FinancialAnalyzer(FakeSource()).map_quote_summary("X", full_summary())
        audit = FinancialAnalyzer.validate_metrics(metrics)
        assert audit.valid_count == 8
        assert audit.total_count == 8
        assert audit.missing_fields == []

    def test_partial(self):
        audit = FinancialAnalyzer.validate_metrics(FinancialMetrics(symbol="X", trailing_pe=12.0))
        assert audit.valid_count == 1
        assert audit.total_count == 8
        assert "market_cap" in audit.missing_fields
        assert "trailing_pe" not in audit.missing_fields
