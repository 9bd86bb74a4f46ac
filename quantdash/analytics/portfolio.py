"""
Portfolio Aggregator - Rolls live strategies up into portfolio statistics.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from loguru import logger

from quantdash.models import (
    Performer,
    PortfolioSnapshot,
    Strategy,
    StrategyKind,
    StrategyKindStats,
)
from quantdash.utils.parsing import clamp_finite


class PortfolioAggregator:
    """
    Aggregates a list of strategies into a PortfolioSnapshot.

    Computes:
    - Totals: invested, P&L, value and P&L percentage
    - Best and worst performer by return on invested capital
    - Allocation by asset symbol and by strategy kind
    - Per-kind counts and totals

    Strategies with no invested capital are left out of the performer
    comparison and the allocation maps. When several strategies share the
    extreme return, the first one in input order is reported.
    """

    def aggregate(self, strategies: Sequence[Strategy | Mapping[str, Any]]) -> PortfolioSnapshot:
        """
        Aggregate strategies into portfolio statistics.

        Args:
            strategies: Strategy records, or raw mappings validated into them

        Returns:
            PortfolioSnapshot for the given strategies

        Raises:
            TypeError: If strategies is not a list/tuple or holds foreign objects
        """
        records = self._coerce(strategies)

        total_invested = clamp_finite(sum(s.total_invested for s in records))
        total_pnl = clamp_finite(sum(s.current_profit_loss for s in records))
        total_value = clamp_finite(total_invested + total_pnl)
        total_pnl_percentage = (
            clamp_finite(total_pnl / total_invested * 100) if total_invested > 0 else 0.0
        )

        best: Performer | None = None
        worst: Performer | None = None
        asset_allocation: dict[str, float] = {}
        strategy_allocation: dict[StrategyKind, float] = {}
        kind_stats: dict[StrategyKind, StrategyKindStats] = {}

        for strategy in records:
            stats = kind_stats.setdefault(strategy.strategy_kind, StrategyKindStats())
            stats.count += 1
            stats.active_count += int(strategy.is_active)
            stats.total_invested += strategy.total_invested
            stats.total_pnl += strategy.current_profit_loss

            return_pct = strategy.return_percentage
            if return_pct is None:
                continue

            if best is None or return_pct > best.return_percentage:
                best = Performer(strategy=strategy, return_percentage=return_pct)
            if worst is None or return_pct < worst.return_percentage:
                worst = Performer(strategy=strategy, return_percentage=return_pct)

            asset_allocation[strategy.asset_symbol] = (
                asset_allocation.get(strategy.asset_symbol, 0.0) + strategy.total_invested
            )
            strategy_allocation[strategy.strategy_kind] = (
                strategy_allocation.get(strategy.strategy_kind, 0.0) + strategy.total_invested
            )

        # Group sums can overflow even when every input is finite.
        for stats in kind_stats.values():
            stats.total_invested = clamp_finite(stats.total_invested)
            stats.total_pnl = clamp_finite(stats.total_pnl)
        asset_allocation = {k: clamp_finite(v) for k, v in asset_allocation.items()}
        strategy_allocation = {k: clamp_finite(v) for k, v in strategy_allocation.items()}

        active_strategies = sum(1 for s in records if s.is_active)

        logger.debug(
            f"Aggregated {len(records)} strategies ({active_strategies} active): "
            f"invested ${total_invested:,.2f}, P&L ${total_pnl:+,.2f} "
            f"({total_pnl_percentage:+.2f}%)"
        )

        return PortfolioSnapshot(
            total_value=total_value,
            total_invested=total_invested,
            total_pnl=total_pnl,
            total_pnl_percentage=total_pnl_percentage,
            best_performer=best,
            worst_performer=worst,
            asset_allocation=asset_allocation,
            strategy_allocation=strategy_allocation,
            total_strategies=len(records),
            active_strategies=active_strategies,
            kind_stats=kind_stats,
        )

    @staticmethod
    def _coerce(strategies: Any) -> list[Strategy]:
        if not isinstance(strategies, (list, tuple)):
            raise TypeError(
                f"aggregate expects a list of strategies, got {type(strategies).__name__}"
            )

        records: list[Strategy] = []
        for item in strategies:
            if isinstance(item, Strategy):
                records.append(item)
            elif isinstance(item, Mapping):
                records.append(Strategy.model_validate(dict(item)))
            else:
                raise TypeError(
                    f"aggregate expects Strategy records or mappings, got {type(item).__name__}"
                )
        return records


def aggregate(strategies: Sequence[Strategy | Mapping[str, Any]]) -> PortfolioSnapshot:
    return PortfolioAggregator().aggregate(strategies)
