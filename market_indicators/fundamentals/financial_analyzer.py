"""Company fundamentals from a quote-summary data provider."""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from market_indicators.utils.logger import get_logger

logger = get_logger(__name__)

FINANCIAL_MODULES = [
    "price",
    "summaryDetail",
    "defaultKeyStatistics",
    "financialData",
    "balanceSheetHistory",
]

DATA_SOURCE = "yahoo-finance"

API_ERROR = "api_error"
DATA_MISSING = "data_missing"
CALCULATION_ERROR = "calculation_error"

METRIC_FIELDS = [
    "market_cap",
    "trailing_pe",
    "forward_pe",
    "price_to_book",
    "return_on_equity",
    "earnings_growth",
    "dividend_yield",
    "equity_ratio",
]


class FinancialDataError(Exception):
    """Fetching or mapping fundamentals for a symbol failed.

    Attributes:
        symbol: Symbol being fetched
        error_type: api_error, data_missing or calculation_error
    """

    def __init__(self, message: str, symbol: str, error_type: str = API_ERROR):
        super().__init__(message)
        self.message = message
        self.symbol = symbol
        self.error_type = error_type


@dataclass
class FinancialMetrics:
    """Fundamental metrics for one symbol.

    Percent fields (return_on_equity, dividend_yield, equity_ratio) are
    already multiplied by 100.
    """
    symbol: str
    company_name: Optional[str] = None
    market_cap: Optional[float] = None
    trailing_pe: Optional[float] = None
    forward_pe: Optional[float] = None
    price_to_book: Optional[float] = None
    return_on_equity: Optional[float] = None
    earnings_growth: Optional[float] = None
    dividend_yield: Optional[float] = None
    equity_ratio: Optional[float] = None
    last_updated: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    data_source: str = DATA_SOURCE

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MetricsAudit:
    valid_count: int
    total_count: int
    missing_fields: list[str]


class QuoteSummarySource(ABC):
    """Provider of quote-summary documents.

    Implementations return the provider's nested dict, e.g.
    ``{"price": {"shortName": ..., "marketCap": ...}, "summaryDetail": {...}}``.
    """

    @abstractmethod
    def fetch_quote_summary(self, symbol: str, modules: Sequence[str]) -> dict:
        """Fetch the requested modules for a symbol.

        Raises:
            Exception: Any provider failure; the analyzer classifies it
        """
        pass


def _number(value: Any) -> Optional[float]:
    """Plain number or ``{"raw": n}`` wrapper; None for anything else."""
    if isinstance(value, dict):
        value = value.get("raw")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


class FinancialAnalyzer:
    """Fetch and normalise company fundamentals.

    Usage:
        analyzer = FinancialAnalyzer(source)
        metrics = analyzer.get_financial_metrics("7203.T")
        batch = analyzer.get_multiple_financial_metrics(["7203.T", "6758.T"])
    """

    def __init__(self, source: QuoteSummarySource, max_workers: int = 4):
        """Initialize analyzer.

        Args:
            source: Quote-summary provider
            max_workers: Thread pool size for batch fetches
        """
        self.source = source
        self.max_workers = max_workers

    def get_financial_metrics(self, symbol: str) -> FinancialMetrics:
        """Fetch one symbol's fundamentals.

        Raises:
            FinancialDataError: Provider failure or unusable response
        """
        try:
            summary = self.source.fetch_quote_summary(symbol, FINANCIAL_MODULES)
        except Exception as e:
            message, error_type = self._classify_error(e, symbol)
            raise FinancialDataError(message, symbol, error_type) from e

        try:
            return self.map_quote_summary(symbol, summary)
        except (AttributeError, TypeError, IndexError) as e:
            raise FinancialDataError(
                f"Unexpected quote summary for {symbol}: {e}", symbol, CALCULATION_ERROR
            ) from e

    def get_multiple_financial_metrics(
        self, symbols: Sequence[str]
    ) -> list[Optional[FinancialMetrics]]:
        """Fetch several symbols concurrently.

        Returns:
            One entry per symbol in input order; None where the fetch failed
        """
        results: list[Optional[FinancialMetrics]] = [None] * len(symbols)
        if not symbols:
            return results

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self.get_financial_metrics, symbol): i
                for i, symbol in enumerate(symbols)
            }
            for future in as_completed(future_to_index):
                i = future_to_index[future]
                try:
                    results[i] = future.result()
                except FinancialDataError as e:
                    logger.warning(f"Financial metrics failed [{symbols[i]}]: {e}")

        fetched = sum(1 for r in results if r is not None)
        logger.info(f"Financial metrics fetched: {fetched}/{len(symbols)}")
        return results

    def map_quote_summary(self, symbol: str, summary: dict) -> FinancialMetrics:
        """Map a quote-summary document onto FinancialMetrics."""
        price = summary.get("price") or {}
        detail = summary.get("summaryDetail") or {}
        statistics = summary.get("defaultKeyStatistics") or {}
        financial = summary.get("financialData") or {}

        metrics = FinancialMetrics(
            symbol=symbol,
            company_name=price.get("shortName") or None,
        )

        # Zero counts as missing for these fields
        metrics.market_cap = _number(price.get("marketCap")) or None
        metrics.trailing_pe = _number(detail.get("trailingPE")) or None
        metrics.price_to_book = _number(statistics.get("priceToBook")) or None
        metrics.earnings_growth = _number(financial.get("earningsGrowth")) or None

        forward_pe = _number(statistics.get("forwardPE"))
        metrics.forward_pe = forward_pe if forward_pe is not None else _number(detail.get("forwardPE"))

        roe = _number(financial.get("returnOnEquity"))
        if roe is not None:
            metrics.return_on_equity = roe * 100

        dividend_yield = _number(detail.get("dividendYield"))
        if dividend_yield is None:
            dividend_yield = _number(detail.get("trailingAnnualDividendYield"))
        if dividend_yield is not None:
            metrics.dividend_yield = dividend_yield * 100

        metrics.equity_ratio = self.calculate_equity_ratio(summary)
        return metrics

    @staticmethod
    def calculate_equity_ratio(summary: dict) -> Optional[float]:
        """Total stockholder equity / total assets * 100 from the latest balance sheet.

        Returns:
            Percent, or None when either value is missing or not positive
        """
        history = summary.get("balanceSheetHistory") or {}
        statements = history.get("balanceSheetStatements") or []
        if not statements:
            return None

        equity = _number(statements[0].get("totalStockholderEquity"))
        total_assets = _number(statements[0].get("totalAssets"))
        if equity is None or total_assets is None or equity <= 0 or total_assets <= 0:
            return None
        return equity / total_assets * 100

    @staticmethod
    def validate_metrics(metrics: FinancialMetrics) -> MetricsAudit:
        """Count which of the eight numeric metrics are present."""
        missing = [name for name in METRIC_FIELDS if getattr(metrics, name) is None]
        return MetricsAudit(
            valid_count=len(METRIC_FIELDS) - len(missing),
            total_count=len(METRIC_FIELDS),
            missing_fields=missing,
        )

    @staticmethod
    def _classify_error(error: Exception, symbol: str) -> tuple[str, str]:
        """Map a provider exception to (message, error_type)."""
        text = str(error)
        if "404" in text or "Not Found" in text:
            return f"Symbol not found: {symbol}", DATA_MISSING
        if "Unauthorized" in text or "401" in text or "403" in text:
            return f"API authentication error: {symbol}", API_ERROR
        if "timeout" in text.lower():
            return f"API timeout: {symbol}", API_ERROR
        if "rate limit" in text.lower():
            return f"API rate limit exceeded: {symbol}", API_ERROR
        return f"Failed to fetch financial metrics: {symbol} ({text})", API_ERROR
