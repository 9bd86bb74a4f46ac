import asyncio
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table, box

from config.settings import Settings, get_settings
from quantdash.analytics import (
    aggregate,
    check_consistency,
    normalize,
    rate,
    rate_backtest,
    summarize_history,
)
from quantdash.data.loader import load_backtest_results, load_strategies
from quantdash.data.sources.strategy_service import StrategyServiceClient
from quantdash.models import PortfolioSnapshot
from quantdash.utils.exceptions import ConfigError, DataFetchError, DataFileError
from quantdash.utils.logging import setup_logging

app = typer.Typer(no_args_is_help=True)
console = Console()


def _init_logging() -> Settings:
    settings = get_settings()
    setup_logging(
        settings.log_level,
        settings.log_dir,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


def _print_snapshot(snapshot: PortfolioSnapshot) -> None:
    typer.echo("Portfolio Summary")
    typer.echo("=" * 50)
    typer.echo(f"Total invested: ${snapshot.total_invested:,.2f}")
    typer.echo(f"Total P&L: ${snapshot.total_pnl:+,.2f} ({snapshot.total_pnl_percentage:+.2f}%)")
    typer.echo(f"Strategies: {snapshot.total_strategies} ({snapshot.active_strategies} active)")

    if snapshot.best_performer is not None:
        best = snapshot.best_performer
        typer.echo(f"Best performer: {best.strategy.name} ({best.return_percentage:+.2f}%)")
    if snapshot.worst_performer is not None:
        worst = snapshot.worst_performer
        typer.echo(f"Worst performer: {worst.strategy.name} ({worst.return_percentage:+.2f}%)")

    if snapshot.asset_allocation:
        table = Table(title="Asset Allocation", box=box.SIMPLE)
        table.add_column("Asset", style="bold")
        table.add_column("Invested", justify="right")
        table.add_column("Share", justify="right")
        shares = snapshot.asset_allocation_pct
        for asset, amount in snapshot.asset_allocation.items():
            table.add_row(asset, f"${amount:,.2f}", f"{shares[asset]:.1f}%")
        console.print(table)

    if snapshot.kind_stats:
        table = Table(title="By Strategy Type", box=box.SIMPLE)
        table.add_column("Type", style="bold")
        table.add_column("Count", justify="right")
        table.add_column("Active", justify="right")
        table.add_column("Invested", justify="right")
        table.add_column("P&L", justify="right")
        for kind, stats in snapshot.kind_stats.items():
            table.add_row(
                kind.value,
                str(stats.count),
                str(stats.active_count),
                f"${stats.total_invested:,.2f}",
                f"${stats.total_pnl:+,.2f}",
            )
        console.print(table)


@app.command()
def curve(
    file: Path = typer.Argument(..., help="Backtest result JSON file"),
    backtest_id: Optional[str] = typer.Option(None, "--id", help="Pick one result by id"),
) -> None:
    """Normalize a backtest's equity curve into plot coordinates."""
    try:
        _init_logging()
        results = load_backtest_results(file)
        if backtest_id is not None:
            results = [r for r in results if r.id == backtest_id]
        if not results:
            typer.echo("No backtest results found", err=True)
            raise typer.Exit(code=1)

        for result in results:
            render = normalize(result)
            label = " (synthetic)" if render.synthetic else ""
            typer.echo(f"\n{result.name or result.id}{label}  baseline ${render.baseline:,.2f}")
            typer.echo("=" * 50)
            typer.echo(f"{'x':>8} | {'y':>8} | {'return %':>10}")
            for point in render.points:
                typer.echo(
                    f"{point.x:>8.2f} | {point.normalized_y:>8.2f} | {point.raw_return_pct:>+10.2f}"
                )

    except DataFileError as e:
        typer.echo(f"Failed to load backtests: {e}", err=True)
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Curve command failed")
        raise typer.Exit(code=1)


@app.command("rate")
def rate_command(
    total_return: str = typer.Option(..., "--return", help="Total return percentage"),
    sharpe: Optional[str] = typer.Option(None, "--sharpe", help="Sharpe ratio (omit when undefined)"),
    win_rate: str = typer.Option(..., "--win-rate", help="Win rate percentage"),
) -> None:
    """Rate a backtest from its headline metrics."""
    try:
        _init_logging()
        result = rate(total_return, sharpe, win_rate)
        typer.echo(f"Rating: {result.rating.value} (score {result.score}/8)")
        typer.echo(f"  Return points: {result.return_points}/3")
        typer.echo(f"  Risk points: {result.risk_points}/3")
        typer.echo(f"  Consistency points: {result.consistency_points}/2")
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Rate command failed")
        raise typer.Exit(code=1)


@app.command()
def portfolio(file: Path = typer.Argument(..., help="Strategies JSON file")) -> None:
    """Summarize a portfolio of strategies."""
    try:
        _init_logging()
        snapshot = aggregate(load_strategies(file))
        _print_snapshot(snapshot)
    except DataFileError as e:
        typer.echo(f"Failed to load strategies: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Portfolio command failed")
        raise typer.Exit(code=1)


@app.command()
def history(file: Path = typer.Argument(..., help="Backtest results JSON file")) -> None:
    """Summarize a list of backtest runs."""
    try:
        _init_logging()
        results = load_backtest_results(file)
        summary = summarize_history(results)

        typer.echo("Backtest History")
        typer.echo("=" * 50)
        typer.echo(f"Total runs: {summary.total_runs}")
        typer.echo(f"Profitable runs: {summary.profitable_runs}")
        typer.echo(f"Average return: {summary.average_return_pct:+.2f}%")
        if summary.best_return_pct is not None:
            typer.echo(f"Best return: {summary.best_return_pct:+.2f}% ({summary.best_run_id or '-'})")

        if results:
            table = Table(box=box.SIMPLE)
            table.add_column("ID", style="bold")
            table.add_column("Type")
            table.add_column("Return", justify="right")
            table.add_column("Sharpe", justify="right")
            table.add_column("Rating")
            for result in results:
                rating = rate_backtest(result)
                table.add_row(
                    result.id,
                    result.strategy_kind.value,
                    f"{result.total_return_percentage:+.2f}%",
                    f"{result.sharpe_ratio:.2f}" if result.sharpe_ratio is not None else "-",
                    rating.rating.value,
                )
            console.print(table)

    except DataFileError as e:
        typer.echo(f"Failed to load backtests: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("History command failed")
        raise typer.Exit(code=1)


@app.command()
def check(file: Path = typer.Argument(..., help="Backtest results JSON file")) -> None:
    """Report internal inconsistencies in backtest results."""
    try:
        _init_logging()
        results = load_backtest_results(file)

        problems = 0
        for result in results:
            issues = check_consistency(result)
            if not issues:
                typer.echo(f"{result.id}: OK")
                continue
            problems += 1
            typer.echo(f"{result.id}: {len(issues)} issue(s)")
            for issue in issues:
                typer.echo(f"  - {issue}")

        if problems:
            raise typer.Exit(code=1)

    except DataFileError as e:
        typer.echo(f"Failed to load backtests: {e}", err=True)
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Check command failed")
        raise typer.Exit(code=1)


@app.command()
def fetch_portfolio() -> None:
    """Fetch strategies from the strategy service and summarize them."""
    try:
        _init_logging()

        async def fetch() -> PortfolioSnapshot:
            async with StrategyServiceClient() as client:
                strategies = await client.get_all_strategies()
            return aggregate(strategies)

        _print_snapshot(asyncio.run(fetch()))

    except DataFetchError as e:
        typer.echo(f"Failed to fetch strategies: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Fetch-portfolio command failed")
        raise typer.Exit(code=1)


@app.command()
def serve(
    open_browser: bool = typer.Option(False, "--open", help="Open the portfolio endpoint in a browser"),
) -> None:
    """Run the local JSON dashboard server."""
    try:
        from quantdash.dashboard.web import run_web_dashboard

        settings = _init_logging()
        run_web_dashboard(settings, open_browser=open_browser)
    except Exception as e:
        typer.echo(f"Dashboard failed: {e}", err=True)
        logger.exception("Serve command failed")
        raise typer.Exit(code=1)


@app.command()
def status() -> None:
    """Check configuration and data files."""
    try:
        settings = _init_logging()

        typer.echo("QuantDash Status")
        typer.echo("=" * 50)

        if not settings.dashboard.data_dir.exists():
            typer.echo(f"Data directory: MISSING ({settings.dashboard.data_dir})")
            raise ConfigError(f"Data directory {settings.dashboard.data_dir} does not exist")
        typer.echo(f"Data directory: {settings.dashboard.data_dir}")

        for label, path in (
            ("Backtests file", settings.dashboard.backtests_path),
            ("Strategies file", settings.dashboard.strategies_path),
        ):
            typer.echo(f"{label}: {'EXISTS' if path.exists() else 'NOT FOUND'} ({path})")

        typer.echo("")
        typer.echo(f"Strategy service: {settings.service.base_url}")
        typer.echo(f"API token configured: {'YES' if settings.service.api_token else 'NO'}")
        typer.echo(f"Dashboard: http://{settings.dashboard.host}:{settings.dashboard.port}")

        logger.info("Status check completed")

    except ConfigError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Status check failed: {e}", err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
