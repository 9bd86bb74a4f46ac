import httpx
import pytest

from config.settings import ServiceSettings
from quantdash.data.sources.strategy_service import STRATEGY_ENDPOINTS, StrategyServiceClient
from quantdash.models import StrategyKind
from quantdash.utils.exceptions import BacktestNotFoundError, DataFetchError


@pytest.fixture
def service_settings() -> ServiceSettings:
    settings = ServiceSettings()
    settings.base_url = "http://service.test/"
    settings.api_token = "secret-token"
    settings.max_retries = 3
    return settings


def _service(settings: ServiceSettings, handler) -> StrategyServiceClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StrategyServiceClient(settings=settings, client=client, retry_delay=0)


@pytest.mark.asyncio
async def test_get_backtest_results(service_settings: ServiceSettings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": "bt-1", "strategy_name": "DCA", "initial_balance": "1000.00"},
                    {"id": "bt-2", "strategy_name": "GridTrading"},
                ]
            },
        )

    async with _service(service_settings, handler) as service:
        results = await service.get_backtest_results()

    assert [r.id for r in results] == ["bt-1", "bt-2"]
    assert results[0].strategy_kind is StrategyKind.DCA
    assert results[0].initial_balance == 1000.0
    assert seen[0].url.path == "/api/v1/backtesting/results"
    assert seen[0].headers["Authorization"] == "Bearer secret-token"


@pytest.mark.asyncio
async def test_get_backtest_result_not_found(service_settings: ServiceSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"detail": "missing"})

    async with _service(service_settings, handler) as service:
        with pytest.raises(BacktestNotFoundError) as exc_info:
            await service.get_backtest_result("bt-404")

    assert exc_info.value.backtest_id == "bt-404"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_server_errors(service_settings: ServiceSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(500)
        return httpx.Response(200, json={"id": "bt-1", "final_balance": "1100"})

    async with _service(service_settings, handler) as service:
        result = await service.get_backtest_result("bt-1")

    assert result.final_balance == 1100.0
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(service_settings: ServiceSettings) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    async with _service(service_settings, handler) as service:
        with pytest.raises(DataFetchError) as exc_info:
            await service.get_backtest_results()

    assert "HTTP 503" in str(exc_info.value)
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_invalid_json_is_a_fetch_error(service_settings: ServiceSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    async with _service(service_settings, handler) as service:
        with pytest.raises(DataFetchError):
            await service.get_backtest_results()


@pytest.mark.asyncio
async def test_get_strategies_tags_kind_from_endpoint(service_settings: ServiceSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/grid-trading/strategies"
        return httpx.Response(
            200,
            json={
                "strategies": [
                    {"id": "g1", "asset_symbol": "ETH", "status": "ACTIVE", "total_invested": "250"},
                    {"id": "g2", "strategy_kind": "dca"},
                ]
            },
        )

    async with _service(service_settings, handler) as service:
        strategies = await service.get_strategies(StrategyKind.GRID_TRADING)

    assert [s.strategy_kind for s in strategies] == [StrategyKind.GRID_TRADING] * 2
    assert strategies[0].total_invested == 250.0
    assert strategies[0].is_active


@pytest.mark.asyncio
async def test_get_strategies_rejects_other_kind(service_settings: ServiceSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    async with _service(service_settings, handler) as service:
        with pytest.raises(ValueError):
            await service.get_strategies(StrategyKind.OTHER)


@pytest.mark.asyncio
async def test_get_all_strategies_skips_failing_kind(service_settings: ServiceSettings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/rsi/strategies"):
            return httpx.Response(404)
        kind = request.url.path.split("/")[-2]
        return httpx.Response(200, json={"strategies": [{"id": f"{kind}-1"}]})

    async with _service(service_settings, handler) as service:
        strategies = await service.get_all_strategies()

    assert len(strategies) == len(STRATEGY_ENDPOINTS) - 1
    assert StrategyKind.RSI not in {s.strategy_kind for s in strategies}
    assert {s.id for s in strategies} == {
        "dca-1",
        "grid-trading-1",
        "sma-crossover-1",
        "macd-1",
    }


@pytest.mark.asyncio
async def test_close_closes_http_client(service_settings: ServiceSettings) -> None:
    service = _service(service_settings, lambda request: httpx.Response(200, json=[]))
    await service.close()
    assert service.client.is_closed
