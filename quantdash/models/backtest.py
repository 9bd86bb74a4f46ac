"""BacktestResult model for a completed simulation run."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    field_validator,
)

from quantdash.utils.parsing import (
    parse_amount,
    parse_count,
    parse_enum,
    parse_optional_ratio,
)


class StrategyKind(str, Enum):
    DCA = "dca"
    GRID_TRADING = "grid_trading"
    SMA_CROSSOVER = "sma_crossover"
    RSI = "rsi"
    MACD = "macd"
    OTHER = "other"


def _lenient_timestamp(value: Any, handler: ValidatorFunctionWrapHandler) -> Optional[datetime]:
    try:
        return handler(value)
    except ValidationError:
        return None


Amount = Annotated[float, BeforeValidator(parse_amount)]
OptionalAmount = Annotated[Optional[float], BeforeValidator(parse_optional_ratio)]
OptionalRatio = Annotated[Optional[float], BeforeValidator(parse_optional_ratio)]
Count = Annotated[int, BeforeValidator(parse_count)]
Timestamp = Annotated[Optional[datetime], WrapValidator(_lenient_timestamp)]
Kind = Annotated[
    StrategyKind,
    BeforeValidator(lambda v: parse_enum(v, StrategyKind, StrategyKind.OTHER)),
]


class EquityPoint(BaseModel):
    model_config = {"from_attributes": True, "extra": "ignore"}

    timestamp: Timestamp = None
    portfolio_value: Amount = 0.0


class BacktestResult(BaseModel):
    """Aggregated backtest output with its equity history.

    Percentages are stored as % (12.5 means 12.5%). Values that cannot be
    parsed fall back instead of failing validation: amounts to 0, optional
    ratios to None, counts to 0.
    """

    model_config = {"from_attributes": True, "extra": "ignore", "populate_by_name": True}

    id: str = ""
    name: str = ""
    strategy_kind: Kind = Field(
        default=StrategyKind.OTHER,
        validation_alias=AliasChoices("strategy_kind", "strategy_name"),
    )
    symbol: str = ""
    start_date: Timestamp = None
    end_date: Timestamp = None

    initial_balance: Amount = 0.0
    total_invested: OptionalAmount = None
    final_balance: Amount = 0.0
    equity_curve: list[EquityPoint] = []

    total_trades: Count = 0
    winning_trades: Count = 0
    losing_trades: Count = 0
    win_rate: Amount = 0.0
    sharpe_ratio: OptionalRatio = None
    profit_factor: OptionalRatio = None

    total_return: Amount = 0.0
    total_return_percentage: Amount = 0.0
    max_drawdown: Amount = 0.0
    max_drawdown_percentage: Amount = 0.0

    @field_validator("id", "name", "symbol", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("equity_curve", mode="before")
    @classmethod
    def coerce_equity_curve(cls, v: Any) -> list[Any]:
        if not isinstance(v, (list, tuple)):
            return []
        # A bare number stands for a point without a timestamp.
        return [
            item if isinstance(item, (dict, EquityPoint)) else {"portfolio_value": item}
            for item in v
        ]

    @property
    def is_profit(self) -> bool:
        return self.total_return >= 0
