"""
Per-trade performance calculations.

Turns one `Trade` into a `TradeMetrics` record: realized P&L on the
exited quantity, percent gain, risk and R-multiple, hold time and the
win/loss outcome.  Values that cannot be computed from the available
fields are ``None`` rather than an exception or a NaN.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import pandas as pd

from ..journal.models import Direction, Trade, TradeStatus
from ..utils.timeutils import minutes_between


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class TradeMetrics:
    """Derived figures for a single trade."""
    trade_id: str
    instrument: str
    direction: Direction
    entry_time: Optional[pd.Timestamp]
    exit_time: Optional[pd.Timestamp]
    exit_price: Optional[float]
    quantity_used: float
    remaining_quantity: float
    total_fees: float
    commission: float
    gross_pnl: Optional[float]
    net_pnl: Optional[float]
    percent_gain: Optional[float]
    risk_amount: Optional[float]
    r_multiple: Optional[float]
    planned_r_multiple: Optional[float]
    hold_time_minutes: Optional[float]
    outcome: Outcome

    @property
    def has_pnl(self) -> bool:
        return self.net_pnl is not None


def weighted_exit_price(trade: Trade) -> Optional[float]:
    """Quantity-weighted average price of the trade's partial exits.

    Returns ``None`` when the trade has no partial exits.  A single fill
    returns its own price so that it matches a plain exit exactly.
    """
    fills = trade.partial_exits
    if not fills:
        return None
    if len(fills) == 1:
        return fills[0].price
    total_qty = sum(pe.quantity for pe in fills)
    if total_qty <= 0:
        return None
    return sum(pe.quantity * pe.price for pe in fills) / total_qty


def resolve_exit(trade: Trade) -> Tuple[Optional[float], Optional[pd.Timestamp]]:
    """Effective exit price and time of a trade.

    Partial exits take precedence over the trade-level exit fields: the
    price is their weighted average and the time is the latest fill.
    """
    if trade.partial_exits:
        last_fill = max(trade.partial_exits, key=lambda pe: pe.datetime)
        return weighted_exit_price(trade), last_fill.datetime
    return trade.exit_price, trade.exit_time


def total_fees(trade: Trade) -> float:
    """Fees charged on the trade.

    For multi-fill trades the sum of the partial exit fees replaces the
    trade-level ``fees`` field, which journal exports fill with the same
    sum.
    """
    if trade.partial_exits:
        return sum(pe.fee for pe in trade.partial_exits)
    return trade.fees


def quantity_used(trade: Trade) -> float:
    """Quantity that has realized P&L: the exited quantity, or the full size."""
    if trade.partial_exits:
        return trade.exited_quantity
    return trade.quantity


def _price_delta(direction: Direction, entry: float, other: float) -> float:
    return other - entry if direction is Direction.LONG else entry - other


def planned_r_multiple(trade: Trade) -> Optional[float]:
    """Reward-to-risk ratio planned from the target and stop loss."""
    if trade.stop_loss is None or trade.target is None:
        return None
    risk = _price_delta(trade.direction, trade.stop_loss, trade.entry_price)
    reward = _price_delta(trade.direction, trade.entry_price, trade.target)
    if risk <= 0 or reward <= 0:
        return None
    return reward / risk


def compute_trade_metrics(trade: Trade) -> TradeMetrics:
    """Compute the derived metrics of one trade.

    Parameters
    ----------
    trade : Trade
        A validated trade record.

    Returns
    -------
    TradeMetrics
        P&L fields are ``None`` and the outcome is ``undetermined`` for
        open trades and trades without a resolvable exit price.
    """
    exit_price, exit_time = resolve_exit(trade)
    qty = quantity_used(trade)
    fees = total_fees(trade)

    gross = net = pct = risk = r_mult = None
    outcome = Outcome.UNDETERMINED
    if trade.status is not TradeStatus.OPEN and exit_price is not None:
        scale = qty * trade.contract_multiplier
        gross = _price_delta(trade.direction, trade.entry_price, exit_price) * scale
        net = gross - trade.commission - fees

        cost_basis = trade.entry_price * qty
        pct = net / cost_basis * 100 if cost_basis != 0 else None

        if trade.stop_loss is not None:
            risk = _price_delta(trade.direction, trade.stop_loss, trade.entry_price) * qty
            if risk > 0:
                r_mult = net / risk

        if net > 0:
            outcome = Outcome.WIN
        elif net < 0:
            outcome = Outcome.LOSS
        else:
            outcome = Outcome.BREAKEVEN

    return TradeMetrics(
        trade_id=trade.trade_id,
        instrument=trade.instrument,
        direction=trade.direction,
        entry_time=trade.entry_time,
        exit_time=exit_time,
        exit_price=exit_price,
        quantity_used=qty,
        remaining_quantity=trade.remaining_quantity,
        total_fees=fees,
        commission=trade.commission,
        gross_pnl=gross,
        net_pnl=net,
        percent_gain=pct,
        risk_amount=risk,
        r_multiple=r_mult,
        planned_r_multiple=planned_r_multiple(trade),
        hold_time_minutes=minutes_between(trade.entry_time, exit_time),
        outcome=outcome,
    )
