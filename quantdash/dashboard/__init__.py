from quantdash.dashboard.web import (
    build_backtest_detail,
    build_backtest_list,
    build_portfolio_summary,
    run_web_dashboard,
)

__all__ = [
    "build_backtest_detail",
    "build_backtest_list",
    "build_portfolio_summary",
    "run_web_dashboard",
]
