from quantdash.analytics.equity_curve import EquityCurveNormalizer, normalize, select_baseline
from quantdash.analytics.rating import PerformanceRatingEngine, rate, rate_backtest
from quantdash.analytics.portfolio import PortfolioAggregator, aggregate
from quantdash.analytics.history import summarize_history
from quantdash.analytics.consistency import check_consistency

__all__ = [
    "EquityCurveNormalizer",
    "normalize",
    "select_baseline",
    "PerformanceRatingEngine",
    "rate",
    "rate_backtest",
    "PortfolioAggregator",
    "aggregate",
    "summarize_history",
    "check_consistency",
]
