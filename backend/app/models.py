# backend/app/models.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_SYMBOL = "ETH/USD"

# legacy stored records use buy/sell
_SIDE_ALIASES = {"buy": "long", "sell": "short"}


def new_position_id() -> str:
    return str(ObjectId())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Side(str, Enum):
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        return 1 if self is Side.LONG else -1


class Direction(str, Enum):
    ABOVE = "above"
    BELOW = "below"


def _normalize_side(v):
    if isinstance(v, str):
        v = v.strip().lower()
        return _SIDE_ALIASES.get(v, v)
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PositionUpdate(CamelModel):
    symbol: Optional[str] = None
    side: Optional[Side] = None
    entry_price: Optional[float] = None
    lot_size: Optional[float] = None

    normalize_side = field_validator("side", mode="before")(_normalize_side)


class PositionCreate(CamelModel):
    symbol: str = DEFAULT_SYMBOL
    side: Side = Side.LONG
    entry_price: float
    lot_size: float

    normalize_side = field_validator("side", mode="before")(_normalize_side)


class Position(PositionCreate):
    id: str = Field(default_factory=new_position_id)
    excluded: bool = False
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        # legacy records carry millisecond integers
        return str(v) if isinstance(v, int) else v


class PositionView(Position):
    floating_pnl: float


class GenerateRequest(CamelModel):
    symbol: str = DEFAULT_SYMBOL
    side: Side = Side.LONG
    base_price: float
    step_size: float
    count: int = Field(gt=0)
    lot_size: float
    direction: Direction = Direction.ABOVE

    normalize_side = field_validator("side", mode="before")(_normalize_side)


class MarketState(CamelModel):
    price: float
    pip_value: float


class MarketUpdate(CamelModel):
    price: Optional[float] = None
    pip_value: Optional[float] = None


class PriceIncrement(CamelModel):
    step: float = 5.0


class PortfolioSummary(CamelModel):
    total_invested: float = 0.0
    total_pnl: float = 0.0
    total_lots: float = 0.0
    average_entry_price: float = 0.0
    pnl_percent: float = 0.0
