"""Load backtest results and strategy lists from JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from quantdash.models import BacktestResult, Strategy, StrategyKind
from quantdash.utils.exceptions import DataFileError
from quantdash.utils.parsing import parse_enum


def load_json_file(path: Path) -> Any:
    """Read and decode a JSON file, raising DataFileError on any failure."""
    if not path.exists():
        raise DataFileError("File not found.", path=str(path))

    try:
        raw = path.read_text(encoding="utf-8")
        return json.loads(raw)
    except OSError as exc:
        raise DataFileError(f"Failed to read file: {exc}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise DataFileError(
            f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno}).",
            path=str(path),
        ) from exc


def load_backtest_results(path: Path) -> list[BacktestResult]:
    """
    Load backtest results.

    The root may be one result object, a list of them, or a service envelope
    ``{"results": [...]}``.
    """
    payload = load_json_file(path)

    if isinstance(payload, dict) and isinstance(payload.get("results"), list):
        payload = payload["results"]
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        raise DataFileError("Root must be a JSON object or list.", path=str(path))

    results = [
        BacktestResult.model_validate(item) for item in payload if isinstance(item, dict)
    ]
    logger.debug(f"Loaded {len(results)} backtest results from {path}")
    return results


def load_strategies(path: Path) -> list[Strategy]:
    """
    Load strategy records.

    Accepted roots: a list of strategies, ``{"strategies": [...]}``, or an
    envelope keyed by kind such as ``{"dca": {"strategies": [...]}}`` where
    each record is tagged with the kind it was filed under.
    """
    payload = load_json_file(path)

    if isinstance(payload, dict) and isinstance(payload.get("strategies"), list):
        payload = payload["strategies"]

    if isinstance(payload, list):
        records = [item for item in payload if isinstance(item, dict)]
    elif isinstance(payload, dict):
        records = _flatten_kind_envelope(payload)
    else:
        raise DataFileError("Root must be a JSON object or list.", path=str(path))

    strategies = [Strategy.model_validate(record) for record in records]
    logger.debug(f"Loaded {len(strategies)} strategies from {path}")
    return strategies


def _flatten_kind_envelope(payload: dict[str, Any]) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for key, section in payload.items():
        if isinstance(section, dict):
            section = section.get("strategies", [])
        if not isinstance(section, list):
            continue

        kind = parse_enum(key, StrategyKind, StrategyKind.OTHER)
        for item in section:
            if isinstance(item, dict):
                records.append({**item, "strategy_kind": kind})
    return records
