"""
Performance Rating Engine - Scores a backtest into a qualitative badge.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from quantdash.models import BacktestResult, PerformanceRating, Rating
from quantdash.utils.parsing import parse_amount, parse_optional_ratio

# (exclusive lower bound, points), checked from the highest tier down.
_Tiers = tuple[tuple[float, int], ...]


class PerformanceRatingEngine:
    """
    Additive scoring across three independent axes.

    Axes:
    - Return: total return percentage (0-3 points)
    - Risk-adjusted: Sharpe ratio, absent counts as 0 (0-3 points)
    - Consistency: win rate percentage (0-2 points)

    The total (0-8) maps to a rating through inclusive lower bounds.
    """

    RETURN_TIERS: _Tiers = ((20.0, 3), (10.0, 2), (0.0, 1))
    SHARPE_TIERS: _Tiers = ((1.5, 3), (1.0, 2), (0.5, 1))
    WIN_RATE_TIERS: _Tiers = ((60.0, 2), (50.0, 1))
    RATING_THRESHOLDS: tuple[tuple[int, Rating], ...] = (
        (7, Rating.EXCELLENT),
        (5, Rating.GOOD),
        (3, Rating.FAIR),
    )

    def rate(
        self,
        total_return_pct: Any,
        sharpe: Any,
        win_rate_pct: Any,
    ) -> PerformanceRating:
        """
        Rate a run from its headline metrics.

        Args:
            total_return_pct: Total return in % (e.g. 25 for 25%)
            sharpe: Sharpe ratio, or None when undefined
            win_rate_pct: Win rate in % (0-100)

        Returns:
            PerformanceRating with the rating and per-axis points
        """
        sharpe_value = parse_optional_ratio(sharpe)

        return_points = self._points(parse_amount(total_return_pct), self.RETURN_TIERS)
        risk_points = self._points(
            sharpe_value if sharpe_value is not None else 0.0,
            self.SHARPE_TIERS,
        )
        consistency_points = self._points(parse_amount(win_rate_pct), self.WIN_RATE_TIERS)
        score = return_points + risk_points + consistency_points

        rating = Rating.POOR
        for threshold, candidate in self.RATING_THRESHOLDS:
            if score >= threshold:
                rating = candidate
                break

        logger.debug(
            f"Performance score {score} "
            f"(return {return_points}, risk {risk_points}, consistency {consistency_points}) "
            f"-> {rating.value}"
        )

        return PerformanceRating(
            rating=rating,
            score=score,
            return_points=return_points,
            risk_points=risk_points,
            consistency_points=consistency_points,
        )

    def rate_backtest(self, result: BacktestResult) -> PerformanceRating:
        if not isinstance(result, BacktestResult):
            raise TypeError(
                f"rate_backtest expects a BacktestResult, got {type(result).__name__}"
            )
        return self.rate(
            result.total_return_percentage,
            result.sharpe_ratio,
            result.win_rate,
        )

    @staticmethod
    def _points(value: float, tiers: _Tiers) -> int:
        for bound, points in tiers:
            if value > bound:
                return points
        return 0


def rate(total_return_pct: Any, sharpe: Any, win_rate_pct: Any) -> PerformanceRating:
    return PerformanceRatingEngine().rate(total_return_pct, sharpe, win_rate_pct)


def rate_backtest(result: BacktestResult) -> PerformanceRating:
    return PerformanceRatingEngine().rate_backtest(result)
