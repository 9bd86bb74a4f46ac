import asyncio
from typing import Any, Optional

import httpx
from loguru import logger

from config.settings import ServiceSettings, get_settings
from quantdash.models import BacktestResult, Strategy, StrategyKind
from quantdash.utils.exceptions import BacktestNotFoundError, DataFetchError

API_PREFIX = "/api/v1"

STRATEGY_ENDPOINTS: dict[StrategyKind, str] = {
    StrategyKind.DCA: "/dca/strategies",
    StrategyKind.GRID_TRADING: "/grid-trading/strategies",
    StrategyKind.SMA_CROSSOVER: "/sma-crossover/strategies",
    StrategyKind.RSI: "/rsi/strategies",
    StrategyKind.MACD: "/macd/strategies",
}


class StrategyServiceClient:
    """Read-only client for the backtesting and strategy service."""

    def __init__(
        self,
        settings: Optional[ServiceSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_delay: float = 1.0,
    ) -> None:
        self.settings = settings or get_settings().service
        self.base_url = self.settings.base_url.rstrip("/") + API_PREFIX
        self.max_retries = max(self.settings.max_retries, 1)
        self.retry_delay = retry_delay

        headers = {"Accept": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"

        self.client = client or httpx.AsyncClient(timeout=self.settings.timeout)
        self.client.headers.update(headers)

        logger.info(f"StrategyServiceClient initialized for {self.base_url}")

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        not_found_id: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                logger.debug(f"{method} {url} (attempt {attempt + 1})")
                response = await self.client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    if not_found_id is not None:
                        raise BacktestNotFoundError(not_found_id)
                    raise DataFetchError("HTTP 404", source="strategy-service", url=url)
                if last_attempt:
                    raise DataFetchError(
                        f"HTTP {e.response.status_code}",
                        source="strategy-service",
                        url=url,
                    )
                sleep_time = self.retry_delay * 2 ** attempt
                logger.warning(f"Request failed, retrying in {sleep_time}s")
                await asyncio.sleep(sleep_time)

            except (httpx.RequestError, ValueError) as e:
                if last_attempt:
                    raise DataFetchError(str(e), source="strategy-service", url=url)
                sleep_time = self.retry_delay * 2 ** attempt
                logger.warning(f"Request error, retrying in {sleep_time}s: {e}")
                await asyncio.sleep(sleep_time)

        raise DataFetchError("Max retries exceeded", source="strategy-service", url=url)

    async def get_backtest_results(self) -> list[BacktestResult]:
        data = await self._request_with_retry("GET", "/backtesting/results")
        items = data.get("results", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise DataFetchError(
                "Unexpected backtest list payload",
                source="strategy-service",
                url=f"{self.base_url}/backtesting/results",
            )

        results = [BacktestResult.model_validate(item) for item in items if isinstance(item, dict)]
        logger.info(f"Fetched {len(results)} backtest results")
        return results

    async def get_backtest_result(self, backtest_id: str) -> BacktestResult:
        data = await self._request_with_retry(
            "GET",
            f"/backtesting/results/{backtest_id}",
            not_found_id=backtest_id,
        )
        if not isinstance(data, dict):
            raise DataFetchError(
                "Unexpected backtest payload",
                source="strategy-service",
                url=f"{self.base_url}/backtesting/results/{backtest_id}",
            )
        return BacktestResult.model_validate(data)

    async def get_strategies(self, kind: StrategyKind) -> list[Strategy]:
        endpoint = STRATEGY_ENDPOINTS.get(kind)
        if endpoint is None:
            raise ValueError(f"No strategy endpoint for kind '{kind.value}'")

        data = await self._request_with_retry("GET", endpoint)
        items = data.get("strategies", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            items = []

        # The endpoint, not the record, decides the kind.
        strategies = [
            Strategy.model_validate({**item, "strategy_kind": kind})
            for item in items
            if isinstance(item, dict)
        ]
        logger.debug(f"Fetched {len(strategies)} {kind.value} strategies")
        return strategies

    async def get_all_strategies(self) -> list[Strategy]:
        """Fetch every kind; a kind whose endpoint fails is skipped."""
        batches = await asyncio.gather(
            *(self.get_strategies(kind) for kind in STRATEGY_ENDPOINTS),
            return_exceptions=True,
        )

        strategies: list[Strategy] = []
        for kind, batch in zip(STRATEGY_ENDPOINTS, batches):
            if isinstance(batch, BaseException):
                if not isinstance(batch, DataFetchError):
                    raise batch
                logger.warning(f"Skipping {kind.value} strategies: {batch}")
                continue
            strategies.extend(batch)

        logger.info(f"Fetched {len(strategies)} strategies across {len(STRATEGY_ENDPOINTS)} kinds")
        return strategies

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("StrategyServiceClient closed")

    async def __aenter__(self) -> "StrategyServiceClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
