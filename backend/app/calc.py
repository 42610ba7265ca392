# backend/app/calc.py

from datetime import datetime, timezone
from typing import Iterable, List

from .models import Direction, PortfolioSummary, Position, Side


def floating_pnl(
    side: Side, entry_price: float, lot_size: float, reference_price: float, pip_value: float
) -> float:
    """
    Unrealized P/L for one position. Not rounded.
    """
    return (reference_price - entry_price) * side.sign * lot_size * pip_value


def valuate(position: Position, reference_price: float, pip_value: float) -> float:
    return floating_pnl(
        position.side, position.entry_price, position.lot_size, reference_price, pip_value
    )


def aggregate(
    positions: Iterable[Position], reference_price: float, pip_value: float
) -> PortfolioSummary:
    """
    Fold the non-excluded positions into summary statistics.

    totalInvested is a notional sum (entry × lots) regardless of side;
    averageEntryPrice and pnlPercent fall back to 0 when their
    denominators are zero.
    """
    active = [p for p in positions if not p.excluded]

    total_invested = sum(p.entry_price * p.lot_size for p in active)
    total_lots = sum(p.lot_size for p in active)
    total_pnl = sum(valuate(p, reference_price, pip_value) for p in active)

    average_entry = total_invested / total_lots if total_lots > 0 else 0.0
    pnl_percent = (total_pnl / total_invested) * 100.0 if total_invested > 0 else 0.0

    return PortfolioSummary(
        total_invested=total_invested,
        total_pnl=total_pnl,
        total_lots=total_lots,
        average_entry_price=average_entry,
        pnl_percent=pnl_percent,
    )


def generate(
    symbol: str,
    side: Side,
    base_price: float,
    step_size: float,
    count: int,
    lot_size: float,
    direction: Direction,
) -> List[Position]:
    """
    Build `count` positions laddered from `base_price` by `step_size`,
    upward for ABOVE and downward for BELOW. All share one timestamp.
    """
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")

    sign = 1 if Direction(direction) is Direction.ABOVE else -1
    now = datetime.now(timezone.utc)
    return [
        Position(
            symbol=symbol,
            side=side,
            entry_price=base_price + sign * step_size * i,
            lot_size=lot_size,
            timestamp=now,
        )
        for i in range(count)
    ]
