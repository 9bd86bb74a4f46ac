"""
Local JSON dashboard server for QuantDash.

Serves the analytics view-models over a stdlib HTTP server so a front end
(or ``curl``) can read them without extra setup. Rendering is left to the
client; every endpoint returns JSON.
"""
from __future__ import annotations

import json
import threading
import webbrowser
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional

from loguru import logger

from config.settings import Settings
from quantdash.analytics import (
    aggregate,
    check_consistency,
    normalize,
    rate_backtest,
    summarize_history,
)
from quantdash.data.loader import load_backtest_results, load_strategies
from quantdash.models import BacktestResult, Strategy
from quantdash.utils.exceptions import DataFileError


class DashboardHTTPServer(ThreadingHTTPServer):
    """HTTP server carrying app settings for request handlers."""

    def __init__(self, server_address: tuple[str, int], settings: Settings) -> None:
        super().__init__(server_address, DashboardHandler)
        self.settings = settings


class DashboardHandler(BaseHTTPRequestHandler):
    """Route GET requests to the JSON view-model builders."""

    server: DashboardHTTPServer

    def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler signature)
        path = self.path.split("?", 1)[0].rstrip("/")

        if path == "/api/portfolio":
            self._send_json(build_portfolio_summary(self.server.settings))
            return

        if path == "/api/backtests":
            self._send_json(build_backtest_list(self.server.settings))
            return

        if path.startswith("/api/backtests/"):
            backtest_id = path[len("/api/backtests/"):]
            detail = build_backtest_detail(self.server.settings, backtest_id)
            if detail is None:
                self._send_json({"error": f"Backtest {backtest_id} not found"}, HTTPStatus.NOT_FOUND)
                return
            self._send_json(detail)
            return

        self.send_error(HTTPStatus.NOT_FOUND, "Not Found")

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.debug("web-dashboard: " + fmt % args)

    def _send_json(self, payload: dict[str, Any], status: HTTPStatus = HTTPStatus.OK) -> None:
        raw = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Cache-Control", "no-store")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)


def _safe_load_strategies(settings: Settings) -> list[Strategy]:
    try:
        return load_strategies(settings.dashboard.strategies_path)
    except DataFileError as exc:
        logger.warning(f"Portfolio summary fallback due to error: {exc}")
        return []


def _safe_load_backtests(settings: Settings) -> list[BacktestResult]:
    try:
        return load_backtest_results(settings.dashboard.backtests_path)
    except DataFileError as exc:
        logger.warning(f"Backtest list fallback due to error: {exc}")
        return []


def build_portfolio_summary(settings: Settings) -> dict[str, Any]:
    """Portfolio snapshot over the configured strategies file."""
    snapshot = aggregate(_safe_load_strategies(settings))
    return snapshot.model_dump(mode="json")


def build_backtest_list(settings: Settings) -> dict[str, Any]:
    """History summary plus one rated row per backtest."""
    results = _safe_load_backtests(settings)

    rows = []
    for result in results:
        rating = rate_backtest(result)
        rows.append(
            {
                "id": result.id,
                "name": result.name,
                "strategy_kind": result.strategy_kind.value,
                "symbol": result.symbol,
                "total_return_percentage": result.total_return_percentage,
                "sharpe_ratio": result.sharpe_ratio,
                "win_rate": result.win_rate,
                "rating": rating.rating.value,
                "score": rating.score,
            }
        )

    return {
        "summary": summarize_history(results).model_dump(mode="json"),
        "backtests": rows,
    }


def build_backtest_detail(settings: Settings, backtest_id: str) -> Optional[dict[str, Any]]:
    """Curve, rating and data-quality findings for one backtest."""
    for result in _safe_load_backtests(settings):
        if result.id == backtest_id:
            return {
                "backtest": result.model_dump(mode="json", exclude={"equity_curve"}),
                "curve": normalize(result).model_dump(mode="json"),
                "rating": rate_backtest(result).model_dump(mode="json"),
                "issues": check_consistency(result),
            }
    return None


def run_web_dashboard(settings: Settings, open_browser: bool = False) -> None:
    """Run the local JSON dashboard until interrupted."""
    host = settings.dashboard.host
    port = settings.dashboard.port
    server = DashboardHTTPServer((host, port), settings)
    url = f"http://{host}:{port}/api/portfolio"

    logger.info(f"Starting dashboard API at http://{host}:{port}")

    if open_browser:
        threading.Thread(target=lambda: webbrowser.open(url), daemon=True).start()

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Dashboard stopped by user")
    finally:
        server.server_close()
