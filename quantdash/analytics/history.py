"""Roll-up statistics over a user's backtest history."""
from __future__ import annotations

from typing import Sequence

from loguru import logger

from quantdash.analytics.rating import PerformanceRatingEngine
from quantdash.models import BacktestHistorySummary, BacktestResult, Rating
from quantdash.utils.parsing import clamp_finite


def summarize_history(results: Sequence[BacktestResult]) -> BacktestHistorySummary:
    """Count, average and best return across past runs, plus a rating tally."""
    if not isinstance(results, (list, tuple)):
        raise TypeError(
            f"summarize_history expects a list of results, got {type(results).__name__}"
        )
    if not results:
        return BacktestHistorySummary()

    engine = PerformanceRatingEngine()
    rating_counts: dict[Rating, int] = {}
    best: BacktestResult | None = None

    for result in results:
        rating = engine.rate_backtest(result).rating
        rating_counts[rating] = rating_counts.get(rating, 0) + 1
        if best is None or result.total_return_percentage > best.total_return_percentage:
            best = result

    returns = [r.total_return_percentage for r in results]
    summary = BacktestHistorySummary(
        total_runs=len(results),
        profitable_runs=sum(1 for value in returns if value > 0),
        average_return_pct=clamp_finite(sum(returns) / len(returns)),
        best_return_pct=best.total_return_percentage,
        best_run_id=best.id or None,
        rating_counts=rating_counts,
    )

    logger.debug(
        f"Backtest history: {summary.total_runs} runs, "
        f"{summary.profitable_runs} profitable, avg {summary.average_return_pct:+.2f}%"
    )
    return summary
