"""
Validation of trade records before they reach the metrics engine.

Per-field gaps (no stop loss, no exit time) are tolerated by the engine
and only exclude a trade from the metric that needs the field.  The
checks here catch records that cannot be interpreted at all, such as a
negative position size or fills closing more than was opened.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional

from .models import Trade

# Exit actions may be written either way in journal exports.
_ALIASES = {"sell": "short", "buy": "long"}

# Absorbs float noise when fractional fills are summed (e.g. 0.1 + 0.2).
_QTY_TOLERANCE = 1e-9


class MalformedTradeError(ValueError):
    """Raised when a trade record is internally inconsistent."""

    def __init__(self, trade_id: str, reason: str) -> None:
        super().__init__(f"Malformed trade {trade_id}: {reason}")
        self.trade_id = trade_id
        self.reason = reason


def _bad_price(value: Optional[float]) -> bool:
    return value is not None and (not math.isfinite(value) or value <= 0)


def validate_trade(trade: Trade) -> None:
    """Check a single trade and raise `MalformedTradeError` on the first problem.

    Parameters
    ----------
    trade : Trade
        The record to check.

    Raises
    ------
    MalformedTradeError
        If quantities, prices, stop or target levels, or partial exit
        actions are invalid.
    """
    tid = trade.trade_id
    if not math.isfinite(trade.quantity) or trade.quantity < 0:
        raise MalformedTradeError(tid, f"invalid quantity {trade.quantity}")
    if _bad_price(trade.entry_price):
        raise MalformedTradeError(tid, f"invalid entry price {trade.entry_price}")
    if _bad_price(trade.exit_price):
        raise MalformedTradeError(tid, f"invalid exit price {trade.exit_price}")
    if not math.isfinite(trade.contract_multiplier) or trade.contract_multiplier <= 0:
        raise MalformedTradeError(tid, f"invalid contract multiplier {trade.contract_multiplier}")
    for name in ("commission", "fees"):
        if not math.isfinite(getattr(trade, name)):
            raise MalformedTradeError(tid, f"{name} is not a finite number")
    for name in ("stop_loss", "target"):
        level = getattr(trade, name)
        if level is not None and not math.isfinite(level):
            raise MalformedTradeError(tid, f"{name} is not a finite number")

    expected_action = trade.direction.exit_action
    for idx, pe in enumerate(trade.partial_exits):
        if not math.isfinite(pe.quantity) or pe.quantity <= 0:
            raise MalformedTradeError(tid, f"partial exit {idx} has non-positive quantity {pe.quantity}")
        if _bad_price(pe.price):
            raise MalformedTradeError(tid, f"partial exit {idx} has invalid price {pe.price}")
        if not math.isfinite(pe.fee):
            raise MalformedTradeError(tid, f"partial exit {idx} fee is not a finite number")
        if str(pe.action).strip().lower() not in (expected_action, _ALIASES[expected_action]):
            raise MalformedTradeError(
                tid,
                f"partial exit {idx} action {pe.action!r} does not close a {trade.direction.value} position",
            )

    if trade.partial_exits and trade.exited_quantity > trade.quantity + _QTY_TOLERANCE:
        raise MalformedTradeError(
            tid,
            f"exited quantity {trade.exited_quantity} exceeds entry quantity {trade.quantity}",
        )


def validate_trades(trades: Iterable[Trade]) -> List[Trade]:
    """Validate every trade, failing fast on the first malformed record."""
    checked: List[Trade] = []
    for trade in trades:
        validate_trade(trade)
        checked.append(trade)
    return checked
