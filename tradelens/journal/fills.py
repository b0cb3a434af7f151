"""
Assemble a journal trade from individual execution fills.

A trade is entered as a list of buy/sell rows.  The first row sets the
position direction: rows on the same side build the position (their
weighted average is the entry price), rows on the opposite side are
partial exits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd

from .models import Direction, PartialExit, Trade, TradeStatus


@dataclass(frozen=True)
class Fill:
    """One execution row as entered by the trader."""
    action: str  # 'buy' or 'sell'
    datetime: pd.Timestamp
    quantity: float
    price: float
    fee: float = 0.0


def remaining_quantity(fills: Sequence[Fill]) -> float:
    """Open quantity after all fills, never below zero."""
    if not fills:
        return 0.0
    main = Direction.parse(fills[0].action)
    opened = sum(f.quantity for f in fills if Direction.parse(f.action) is main)
    closed = sum(f.quantity for f in fills if Direction.parse(f.action) is not main)
    return max(0.0, opened - closed)


def build_trade_from_fills(
    trade_id: str,
    instrument: str,
    fills: Sequence[Fill],
    stop_loss: Optional[float] = None,
    target: Optional[float] = None,
    contract_multiplier: float = 1.0,
    commission: float = 0.0,
) -> Trade:
    """Build a `Trade` from its fills.

    Parameters
    ----------
    trade_id, instrument : str
        Identity of the resulting trade.
    fills : sequence of Fill
        Execution rows in the order they were entered.  The first row
        determines the direction.
    stop_loss, target : float, optional
        Risk and reward levels for R-multiple calculations.
    contract_multiplier : float
        Price multiplier for derivatives.
    commission : float
        Trade-level commission.

    Returns
    -------
    Trade
        Fees of the opening fills are added to ``commission``; exit
        fills keep their own fees as partial exits.

    Raises
    ------
    ValueError
        If no fills are given or the opening quantity is zero.
    """
    if not fills:
        raise ValueError(f"Trade {trade_id} needs at least one fill")
    direction = Direction.parse(fills[0].action)
    entries = [f for f in fills if Direction.parse(f.action) is direction]
    exits = [f for f in fills if Direction.parse(f.action) is not direction]

    quantity = sum(f.quantity for f in entries)
    if quantity <= 0:
        raise ValueError(f"Trade {trade_id} has no opening quantity")
    entry_price = sum(f.quantity * f.price for f in entries) / quantity

    partial_exits = tuple(
        PartialExit(action=f.action.lower(), datetime=f.datetime, quantity=f.quantity, price=f.price, fee=f.fee)
        for f in exits
    )
    exited = sum(pe.quantity for pe in partial_exits)
    if exited <= 0:
        status = TradeStatus.OPEN
    elif exited >= quantity:
        status = TradeStatus.CLOSED
    else:
        status = TradeStatus.PARTIALLY_CLOSED

    return Trade(
        trade_id=trade_id,
        instrument=instrument,
        direction=direction,
        entry_price=entry_price,
        entry_time=fills[0].datetime,
        quantity=quantity,
        contract_multiplier=contract_multiplier,
        stop_loss=stop_loss,
        target=target,
        commission=commission + sum(f.fee for f in entries),
        status=status,
        partial_exits=partial_exits,
    )
