from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, field_validator

from quantdash.models.backtest import Amount, Kind, StrategyKind
from quantdash.utils.parsing import clamp_finite, parse_enum


class StrategyStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


Status = Annotated[
    StrategyStatus,
    BeforeValidator(lambda v: parse_enum(v, StrategyStatus, StrategyStatus.DRAFT)),
]


class Strategy(BaseModel):
    model_config = {"from_attributes": True, "extra": "ignore"}

    id: str = ""
    name: str = ""
    strategy_kind: Kind = StrategyKind.OTHER
    asset_symbol: str = ""
    status: Status = StrategyStatus.DRAFT
    total_invested: Amount = 0.0
    current_profit_loss: Amount = 0.0

    @field_validator("id", "name", "asset_symbol", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def is_active(self) -> bool:
        return self.status is StrategyStatus.ACTIVE

    @property
    def return_percentage(self) -> float | None:
        """P&L relative to invested capital; None when nothing is invested."""
        if self.total_invested <= 0:
            return None
        return clamp_finite(self.current_profit_loss / self.total_invested * 100)
