# backend/app/main.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .calc import aggregate, valuate
from .config import LOG_LEVEL
from .database import db
from .logging_config import setup_logging
from .models import (
    GenerateRequest,
    MarketState,
    MarketUpdate,
    PortfolioSummary,
    Position,
    PositionCreate,
    PositionUpdate,
    PositionView,
    PriceIncrement,
)
from .store import PortfolioStore

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="ETH Terminal Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ──────────────────────────
# Helpers
# ──────────────────────────
def get_store() -> PortfolioStore:
    return PortfolioStore(db)


def _view(position: Position, market: MarketState) -> PositionView:
    return PositionView(
        **position.model_dump(),
        floating_pnl=valuate(position, market.price, market.pip_value),
    )


def _not_found(position_id: str) -> HTTPException:
    logger.warning("Position %s not found", position_id)
    return HTTPException(status_code=404, detail="Position not found")


# ──────────────────────────
# Positions (CRUD + valuation)
# ──────────────────────────
@app.get("/positions", response_model=List[PositionView])
async def read_positions(store: PortfolioStore = Depends(get_store)):
    positions = await store.load_positions()
    market = await store.load_market()
    return [_view(p, market) for p in positions]


@app.get("/positions/summary", response_model=PortfolioSummary)
async def positions_summary(store: PortfolioStore = Depends(get_store)):
    """
    Totals across non-excluded positions at the current reference price.
    """
    positions = await store.load_positions()
    market = await store.load_market()
    return aggregate(positions, market.price, market.pip_value)


@app.post("/positions/generate", response_model=List[PositionView])
async def generate_positions(request: GenerateRequest, store: PortfolioStore = Depends(get_store)):
    batch = await store.generate_positions(request)
    market = await store.load_market()
    return [_view(p, market) for p in batch]


@app.get("/positions/{position_id}", response_model=PositionView)
async def read_position(position_id: str, store: PortfolioStore = Depends(get_store)):
    position = await store.get_position(position_id)
    if position is None:
        raise _not_found(position_id)
    return _view(position, await store.load_market())


@app.post("/positions", response_model=PositionView)
async def create_position(position: PositionCreate, store: PortfolioStore = Depends(get_store)):
    new = await store.add_position(position)
    return _view(new, await store.load_market())


@app.put("/positions/{position_id}", response_model=PositionView)
async def update_position(
    position_id: str, patch: PositionUpdate, store: PortfolioStore = Depends(get_store)
):
    updated = await store.update_position(position_id, patch)
    if updated is None:
        raise _not_found(position_id)
    return _view(updated, await store.load_market())


@app.post("/positions/{position_id}/toggle-excluded", response_model=PositionView)
async def toggle_excluded(position_id: str, store: PortfolioStore = Depends(get_store)):
    toggled = await store.toggle_excluded(position_id)
    if toggled is None:
        raise _not_found(position_id)
    return _view(toggled, await store.load_market())


@app.delete("/positions/{position_id}")
async def delete_position(position_id: str, store: PortfolioStore = Depends(get_store)):
    if not await store.delete_position(position_id):
        raise _not_found(position_id)
    return {"ok": True}


@app.delete("/positions")
async def clear_positions(store: PortfolioStore = Depends(get_store)):
    return {"deleted": await store.clear_positions()}


# ──────────────────────────
# Market context (reference price + pip value)
# ──────────────────────────
@app.get("/market", response_model=MarketState)
async def read_market(store: PortfolioStore = Depends(get_store)):
    return await store.load_market()


@app.put("/market", response_model=MarketState)
async def update_market(patch: MarketUpdate, store: PortfolioStore = Depends(get_store)):
    if patch.price is not None:
        await store.set_price(patch.price)
    if patch.pip_value is not None:
        await store.set_pip_value(patch.pip_value)
    return await store.load_market()


@app.post("/market/price/increment", response_model=MarketState)
async def increment_price(
    body: Optional[PriceIncrement] = None, store: PortfolioStore = Depends(get_store)
):
    step = body.step if body is not None else PriceIncrement().step
    return await store.increment_price(step)
