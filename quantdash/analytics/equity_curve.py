"""
Equity Curve Normalizer - Turns a backtest's equity history into plot points.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from quantdash.models import BacktestResult, CurvePoint, RenderCurve, StrategyKind
from quantdash.utils.parsing import clamp_finite


def select_baseline(result: BacktestResult) -> float:
    """
    Capital that percentage returns are measured against.

    DCA runs deploy capital gradually, so their return is measured against
    the capital actually invested. Every other run uses the initial balance.
    """
    if (
        result.strategy_kind is StrategyKind.DCA
        and result.total_invested is not None
        and result.total_invested > 0
    ):
        return result.total_invested
    return result.initial_balance


class EquityCurveNormalizer:
    """
    Maps an equity history into a bounded, plot-ready curve.

    x runs from 0 to 100 across the points. Returns are rescaled into
    [PLOT_FLOOR, PLOT_FLOOR + PLOT_SPAN], leaving a margin on each side for
    axis labels. Malformed input degrades to a flat curve and never raises.
    """

    SYNTHETIC_POINTS = 21
    PLOT_FLOOR = 10.0
    PLOT_SPAN = 80.0
    MIN_RANGE = 1.0

    def normalize(self, result: BacktestResult | Mapping[str, Any]) -> RenderCurve:
        """
        Build the render curve for a backtest result.

        Args:
            result: Backtest result, or a raw mapping validated into one

        Returns:
            RenderCurve with at least two points

        Raises:
            TypeError: If result is neither a BacktestResult nor a mapping
        """
        if isinstance(result, Mapping):
            result = BacktestResult.model_validate(dict(result))
        elif not isinstance(result, BacktestResult):
            raise TypeError(
                f"normalize expects a BacktestResult or mapping, got {type(result).__name__}"
            )

        baseline = select_baseline(result)
        values = [point.portfolio_value for point in result.equity_curve]
        synthetic = not values

        if synthetic:
            values = self._interpolate(baseline, result.final_balance)
        elif len(values) == 1:
            # Single observation: flat line across the whole x-axis.
            values = values * 2

        raw_returns = [self._return_pct(value, baseline) for value in values]
        min_y = min(raw_returns)
        max_y = max(raw_returns)
        # Halved so that extreme but finite returns cannot overflow the spread.
        half_range = max(max_y / 2 - min_y / 2, self.MIN_RANGE / 2)

        last_index = len(raw_returns) - 1
        points = [
            CurvePoint(
                x=index / last_index * 100,
                normalized_y=self._plot_y((raw / 2 - min_y / 2) / half_range),
                raw_return_pct=raw,
            )
            for index, raw in enumerate(raw_returns)
        ]

        logger.debug(
            f"Normalized equity curve for {result.id or 'backtest'}: "
            f"{len(points)} points, baseline {baseline:,.2f}, "
            f"returns {min_y:+.2f}% .. {max_y:+.2f}%"
            + (" (synthetic)" if synthetic else "")
        )

        return RenderCurve(points=points, baseline=baseline, synthetic=synthetic)

    def _interpolate(self, start: float, end: float) -> list[float]:
        steps = self.SYNTHETIC_POINTS - 1
        return [start * (1 - i / steps) + end * i / steps for i in range(steps)] + [end]

    def _plot_y(self, fraction: float) -> float:
        y = fraction * self.PLOT_SPAN + self.PLOT_FLOOR
        return min(max(y, self.PLOT_FLOOR), self.PLOT_FLOOR + self.PLOT_SPAN)

    @staticmethod
    def _return_pct(value: float, baseline: float) -> float:
        if baseline == 0:
            return 0.0
        return clamp_finite((value - baseline) / baseline * 100)


def normalize(result: BacktestResult | Mapping[str, Any]) -> RenderCurve:
    return EquityCurveNormalizer().normalize(result)
