"""Data-quality findings for a backtest result.

The analytics functions degrade silently on bad data; this check lets the
presentation layer tell the user why a curve or rating may look off.
"""
from __future__ import annotations

from datetime import datetime, timezone

from quantdash.models import BacktestResult

FINAL_BALANCE_TOLERANCE = 0.01


def check_consistency(result: BacktestResult) -> list[str]:
    """Return human-readable findings; an empty list means consistent."""
    if not isinstance(result, BacktestResult):
        raise TypeError(
            f"check_consistency expects a BacktestResult, got {type(result).__name__}"
        )

    findings: list[str] = []

    if (
        result.start_date
        and result.end_date
        and _as_utc(result.end_date) < _as_utc(result.start_date)
    ):
        findings.append(
            f"end_date {result.end_date.isoformat()} precedes "
            f"start_date {result.start_date.isoformat()}."
        )

    closed_trades = result.winning_trades + result.losing_trades
    if closed_trades > result.total_trades:
        findings.append(
            f"winning_trades + losing_trades ({closed_trades}) exceeds "
            f"total_trades ({result.total_trades})."
        )

    if not 0.0 <= result.win_rate <= 100.0:
        findings.append(f"win_rate must be within 0-100; got {result.win_rate}.")

    if result.equity_curve:
        last_value = result.equity_curve[-1].portfolio_value
        if abs(last_value - result.final_balance) > FINAL_BALANCE_TOLERANCE:
            findings.append(
                f"Last equity point {last_value:,.2f} differs from "
                f"final_balance {result.final_balance:,.2f}."
            )

    return findings


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the service are UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
