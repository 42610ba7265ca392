# backend/app/store.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import TypeAdapter

from . import calc
from .models import (
    DEFAULT_SYMBOL,
    GenerateRequest,
    MarketState,
    Position,
    PositionCreate,
    PositionUpdate,
    Side,
)

logger = logging.getLogger(__name__)

# Record keys shared with the legacy browser dashboard's storage
TRADES_KEY = "eth_terminal_trades"
PRICE_KEY = "eth_terminal_price"
PIP_VALUE_KEY = "eth_terminal_pip_value"

DEFAULT_PRICE = 2310.50
DEFAULT_PIP_VALUE = 1.0

_positions_adapter = TypeAdapter(List[Position])


def default_positions() -> List[Position]:
    now = datetime.now(timezone.utc)
    return [
        Position(symbol=DEFAULT_SYMBOL, side=Side.LONG, entry_price=2250.00, lot_size=1.0, timestamp=now),
        Position(symbol=DEFAULT_SYMBOL, side=Side.SHORT, entry_price=2400.00, lot_size=0.5, timestamp=now),
    ]


class PortfolioStore:
    """
    Owns the position list and the market context.

    Each of the three records lives in its own document of the ``terminal``
    collection as JSON text, so it round-trips verbatim. Every mutation is
    written straight back; nothing is cached between calls.
    """

    def __init__(self, database):
        self._records = database.terminal

    # ──────────────────────────
    # Raw records
    # ──────────────────────────
    async def _read(self, key: str) -> Any:
        doc = await self._records.find_one({"_id": key})
        if doc is None:
            return None
        # malformed payloads are not recovered from
        return json.loads(doc["value"])

    async def _write(self, key: str, value: Any) -> None:
        await self._records.update_one(
            {"_id": key},
            {"$set": {"value": json.dumps(value), "updated_at": datetime.now(timezone.utc)}},
            upsert=True,
        )

    # ──────────────────────────
    # Positions
    # ──────────────────────────
    async def load_positions(self) -> List[Position]:
        raw = await self._read(TRADES_KEY)
        if raw is None:
            # persisted right away so seeded ids stay stable across requests
            logger.debug("No stored positions, writing default seed")
            seed = default_positions()
            await self.save_positions(seed)
            return seed
        return _positions_adapter.validate_python(raw)

    async def save_positions(self, positions: List[Position]) -> None:
        payload = [p.model_dump(mode="json", by_alias=True) for p in positions]
        await self._write(TRADES_KEY, payload)

    async def get_position(self, position_id: str) -> Optional[Position]:
        for p in await self.load_positions():
            if p.id == position_id:
                return p
        return None

    async def add_position(self, create: PositionCreate) -> Position:
        positions = await self.load_positions()
        new = Position(**create.model_dump())
        positions.append(new)
        await self.save_positions(positions)
        logger.info(
            "Added %s %s @ %s x %s (id=%s)",
            new.side.value, new.symbol, new.entry_price, new.lot_size, new.id,
        )
        return new

    async def update_position(self, position_id: str, patch: PositionUpdate) -> Optional[Position]:
        positions = await self.load_positions()
        changes = patch.model_dump(exclude_none=True)
        for i, p in enumerate(positions):
            if p.id != position_id:
                continue
            if changes:
                positions[i] = p.model_copy(update=changes)
                await self.save_positions(positions)
                logger.info("Updated position %s: %s", position_id, sorted(changes))
            return positions[i]
        return None

    async def toggle_excluded(self, position_id: str) -> Optional[Position]:
        positions = await self.load_positions()
        for i, p in enumerate(positions):
            if p.id == position_id:
                positions[i] = p.model_copy(update={"excluded": not p.excluded})
                await self.save_positions(positions)
                logger.info("Position %s excluded=%s", position_id, positions[i].excluded)
                return positions[i]
        return None

    async def delete_position(self, position_id: str) -> bool:
        positions = await self.load_positions()
        kept = [p for p in positions if p.id != position_id]
        if len(kept) == len(positions):
            return False
        await self.save_positions(kept)
        logger.info("Deleted position %s", position_id)
        return True

    async def clear_positions(self) -> int:
        positions = await self.load_positions()
        await self.save_positions([])
        logger.info("Cleared %d positions", len(positions))
        return len(positions)

    async def generate_positions(self, request: GenerateRequest) -> List[Position]:
        # built in full before anything is persisted
        batch = calc.generate(
            symbol=request.symbol,
            side=request.side,
            base_price=request.base_price,
            step_size=request.step_size,
            count=request.count,
            lot_size=request.lot_size,
            direction=request.direction,
        )
        positions = await self.load_positions()
        positions.extend(batch)
        await self.save_positions(positions)
        logger.info(
            "Generated %d %s positions from %s (step %s, %s)",
            len(batch), request.side.value, request.base_price,
            request.step_size, request.direction.value,
        )
        return batch

    # ──────────────────────────
    # Market context
    # ──────────────────────────
    async def load_market(self) -> MarketState:
        price = await self._read(PRICE_KEY)
        pip_value = await self._read(PIP_VALUE_KEY)
        return MarketState(
            price=DEFAULT_PRICE if price is None else price,
            pip_value=DEFAULT_PIP_VALUE if pip_value is None else pip_value,
        )

    async def set_price(self, price: float) -> MarketState:
        await self._write(PRICE_KEY, price)
        logger.info("Reference price set to %s", price)
        return await self.load_market()

    async def increment_price(self, step: float = 5.0) -> MarketState:
        market = await self.load_market()
        return await self.set_price(market.price + step)

    async def set_pip_value(self, pip_value: float) -> MarketState:
        await self._write(PIP_VALUE_KEY, pip_value)
        logger.info("Pip value set to %s", pip_value)
        return await self.load_market()
