"""Tests for CLI commands."""
import json

import pytest
from typer.testing import CliRunner

import cli
from cli import app
from config.settings import Settings
from quantdash.models import Strategy
from quantdash.utils.exceptions import DataFetchError


runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_settings(tmp_path, monkeypatch) -> Settings:
    settings = Settings()
    settings.dashboard.data_dir = tmp_path / "data"
    settings.log_dir = tmp_path / "logs"
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    return settings


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


BACKTEST = {
    "id": "bt-1",
    "name": "BTC crossover",
    "strategy_kind": "sma_crossover",
    "initial_balance": 1000,
    "final_balance": 900,
    "equity_curve": [
        {"timestamp": "2024-01-01T00:00:00Z", "portfolio_value": 1000},
        {"timestamp": "2024-01-02T00:00:00Z", "portfolio_value": 1100},
        {"timestamp": "2024-01-03T00:00:00Z", "portfolio_value": 900},
    ],
    "total_trades": 3,
    "winning_trades": 1,
    "losing_trades": 2,
    "win_rate": 33.3,
    "total_return_percentage": -10,
}


class TestRateCommand:
    def test_rate_excellent(self):
        result = runner.invoke(app, ["rate", "--return", "25", "--sharpe", "2.0", "--win-rate", "65"])
        assert result.exit_code == 0
        assert "Rating: Excellent (score 8/8)" in result.output

    def test_rate_missing_sharpe(self):
        result = runner.invoke(app, ["rate", "--return", "5", "--sharpe", "", "--win-rate", "45"])
        assert result.exit_code == 0
        assert "Rating: Poor (score 1/8)" in result.output
        assert "Risk points: 0/3" in result.output

    def test_rate_without_sharpe_option(self):
        result = runner.invoke(app, ["rate", "--return", "5", "--win-rate", "45"])
        assert result.exit_code == 0
        assert "Rating: Poor (score 1/8)" in result.output
        assert "Risk points: 0/3" in result.output


class TestCurveCommand:
    def test_curve_prints_points(self, tmp_path):
        path = _write(tmp_path / "bt.json", BACKTEST)
        result = runner.invoke(app, ["curve", path])
        assert result.exit_code == 0
        assert "BTC crossover" in result.output
        assert "50.00 |    90.00 |     +10.00" in result.output

    def test_curve_synthetic(self, tmp_path):
        path = _write(tmp_path / "bt.json", {**BACKTEST, "equity_curve": []})
        result = runner.invoke(app, ["curve", path])
        assert result.exit_code == 0
        assert "(synthetic)" in result.output

    def test_curve_unknown_id(self, tmp_path):
        path = _write(tmp_path / "bt.json", BACKTEST)
        result = runner.invoke(app, ["curve", path, "--id", "nope"])
        assert result.exit_code == 1
        assert "No backtest results found" in result.output

    def test_curve_missing_file(self, tmp_path):
        result = runner.invoke(app, ["curve", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Failed to load backtests" in result.output


class TestPortfolioCommand:
    def test_portfolio_summary(self, tmp_path):
        path = _write(
            tmp_path / "strategies.json",
            [
                {"id": "a", "name": "BTC DCA", "strategy_kind": "dca", "asset_symbol": "BTC",
                 "status": "active", "total_invested": "1000", "current_profit_loss": "200"},
                {"id": "b", "name": "ETH Grid", "strategy_kind": "grid_trading", "asset_symbol": "ETH",
                 "status": "paused", "total_invested": "0", "current_profit_loss": "50"},
            ],
        )
        result = runner.invoke(app, ["portfolio", path])
        assert result.exit_code == 0
        assert "Total invested: $1,000.00" in result.output
        assert "Total P&L: $+250.00 (+25.00%)" in result.output
        assert "Strategies: 2 (1 active)" in result.output
        assert "Best performer: BTC DCA (+20.00%)" in result.output

    def test_portfolio_invalid_json(self, tmp_path):
        path = tmp_path / "strategies.json"
        path.write_text("[", encoding="utf-8")
        result = runner.invoke(app, ["portfolio", str(path)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestHistoryCommand:
    def test_history_summary(self, tmp_path):
        other = {**BACKTEST, "id": "bt-2", "total_return_percentage": 30}
        path = _write(tmp_path / "bt.json", {"results": [BACKTEST, other]})
        result = runner.invoke(app, ["history", path])
        assert result.exit_code == 0
        assert "Total runs: 2" in result.output
        assert "Profitable runs: 1" in result.output
        assert "Best return: +30.00% (bt-2)" in result.output

    def test_history_empty(self, tmp_path):
        path = _write(tmp_path / "bt.json", [])
        result = runner.invoke(app, ["history", path])
        assert result.exit_code == 0
        assert "Total runs: 0" in result.output
        assert "Best return" not in result.output


class TestCheckCommand:
    def test_check_consistent(self, tmp_path):
        path = _write(tmp_path / "bt.json", BACKTEST)
        result = runner.invoke(app, ["check", path])
        assert result.exit_code == 0
        assert "bt-1: OK" in result.output

    def test_check_reports_issues(self, tmp_path):
        path = _write(tmp_path / "bt.json", {**BACKTEST, "final_balance": 5000, "win_rate": 120})
        result = runner.invoke(app, ["check", path])
        assert result.exit_code == 1
        assert "bt-1: 2 issue(s)" in result.output


class TestFetchPortfolioCommand:
    def test_fetch_portfolio(self, monkeypatch):
        class FakeClient:
            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc):
                return None

            async def get_all_strategies(self):
                return [
                    Strategy(id="a", name="Remote DCA", asset_symbol="BTC",
                             total_invested=100.0, current_profit_loss=5.0)
                ]

        monkeypatch.setattr(cli, "StrategyServiceClient", FakeClient)
        result = runner.invoke(app, ["fetch-portfolio"])
        assert result.exit_code == 0
        assert "Best performer: Remote DCA (+5.00%)" in result.output

    def test_fetch_portfolio_failure(self, monkeypatch):
        class FailingClient:
            async def __aenter__(self):
                raise DataFetchError("HTTP 503", source="strategy-service")

            async def __aexit__(self, *exc):
                return None

        monkeypatch.setattr(cli, "StrategyServiceClient", FailingClient)
        result = runner.invoke(app, ["fetch-portfolio"])
        assert result.exit_code == 1
        assert "Failed to fetch strategies" in result.output


class TestStatusCommand:
    def test_status_missing_data_dir(self):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "Data directory: MISSING" in result.output
        assert result.output.count("Configuration error") == 1
        assert "Configuration error: Data directory" in result.output

    def test_status_ok(self, cli_settings):
        cli_settings.dashboard.data_dir.mkdir(parents=True)
        cli_settings.dashboard.backtests_path.write_text("[]", encoding="utf-8")
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Backtests file: EXISTS" in result.output
        assert "Strategies file: NOT FOUND" in result.output


class TestServeCommand:
    def test_serve_runs_dashboard(self, monkeypatch, cli_settings):
        calls = []
        monkeypatch.setattr(
            "quantdash.dashboard.web.run_web_dashboard",
            lambda settings, open_browser=False: calls.append((settings, open_browser)),
        )
        result = runner.invoke(app, ["serve", "--open"])
        assert result.exit_code == 0
        assert calls == [(cli_settings, True)]


class TestHelp:
    def test_commands_listed(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("curve", "rate", "portfolio", "history", "check", "fetch-portfolio", "serve", "status"):
            assert command in result.output


class TestLoggingSetup:
    def test_commands_pass_log_settings(self, monkeypatch, cli_settings):
        calls = []
        monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: calls.append((args, kwargs)))
        cli_settings.log_rotation = "1 MB"
        cli_settings.log_retention = "3 days"

        result = runner.invoke(app, ["rate", "--return", "25", "--sharpe", "2.0", "--win-rate", "65"])

        assert result.exit_code == 0
        assert calls == [
            ((cli_settings.log_level, cli_settings.log_dir), {"rotation": "1 MB", "retention": "3 days"})
        ]
