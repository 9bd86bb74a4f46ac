from quantdash.models.backtest import BacktestResult, EquityPoint, StrategyKind
from quantdash.models.strategy import Strategy, StrategyStatus
from quantdash.models.analytics import (
    CurvePoint,
    RenderCurve,
    Rating,
    PerformanceRating,
    Performer,
    StrategyKindStats,
    PortfolioSnapshot,
    BacktestHistorySummary,
)

__all__ = [
    "BacktestResult",
    "EquityPoint",
    "StrategyKind",
    "Strategy",
    "StrategyStatus",
    "CurvePoint",
    "RenderCurve",
    "Rating",
    "PerformanceRating",
    "Performer",
    "StrategyKindStats",
    "PortfolioSnapshot",
    "BacktestHistorySummary",
]
