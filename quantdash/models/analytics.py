"""View-models produced by the analytics engine.

These are rebuilt on every call and never persisted.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, computed_field

from quantdash.models.backtest import StrategyKind
from quantdash.models.strategy import Strategy
from quantdash.utils.parsing import clamp_finite


class CurvePoint(BaseModel):
    model_config = {"from_attributes": True}

    x: float
    normalized_y: float
    raw_return_pct: float


class RenderCurve(BaseModel):
    """Plot-ready equity curve: x in [0, 100], normalized_y in [10, 90]."""

    model_config = {"from_attributes": True}

    points: list[CurvePoint]
    baseline: float
    synthetic: bool = False

    @property
    def raw_returns(self) -> list[float]:
        return [p.raw_return_pct for p in self.points]

    @property
    def normalized(self) -> list[float]:
        return [p.normalized_y for p in self.points]


class Rating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class PerformanceRating(BaseModel):
    model_config = {"from_attributes": True}

    rating: Rating
    score: int
    return_points: int
    risk_points: int
    consistency_points: int


class Performer(BaseModel):
    model_config = {"from_attributes": True}

    strategy: Strategy
    return_percentage: float


class StrategyKindStats(BaseModel):
    model_config = {"from_attributes": True}

    count: int = 0
    active_count: int = 0
    total_invested: float = 0.0
    total_pnl: float = 0.0


class PortfolioSnapshot(BaseModel):
    model_config = {"from_attributes": True}

    total_value: float = 0.0
    total_invested: float = 0.0
    total_pnl: float = 0.0
    total_pnl_percentage: float = 0.0
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None
    asset_allocation: dict[str, float] = {}
    strategy_allocation: dict[StrategyKind, float] = {}

    total_strategies: int = 0
    active_strategies: int = 0
    kind_stats: dict[StrategyKind, StrategyKindStats] = {}

    @computed_field
    @property
    def asset_allocation_pct(self) -> dict[str, float]:
        return _shares(self.asset_allocation, self.total_invested)

    @computed_field
    @property
    def strategy_allocation_pct(self) -> dict[StrategyKind, float]:
        return _shares(self.strategy_allocation, self.total_invested)


class BacktestHistorySummary(BaseModel):
    model_config = {"from_attributes": True}

    total_runs: int = 0
    profitable_runs: int = 0
    average_return_pct: float = 0.0
    best_return_pct: Optional[float] = None
    best_run_id: Optional[str] = None
    rating_counts: dict[Rating, int] = {}


def _shares(groups: dict, total: float) -> dict:
    if total <= 0:
        return {key: 0.0 for key in groups}
    return {key: clamp_finite(amount / total * 100) for key, amount in groups.items()}
