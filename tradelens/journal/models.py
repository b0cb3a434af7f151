"""
Trade and partial exit models.

These dataclasses are the read-only snapshots handed to the metrics
engine.  They are frozen so that one computation can never alter the
records another caller is looking at.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import pandas as pd


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, value: str) -> "Direction":
        """Map a journal action (``buy``/``long``/``sell``/``short``) to a direction."""
        action = str(value).strip().lower()
        if action in ("buy", "long"):
            return cls.LONG
        if action in ("sell", "short"):
            return cls.SHORT
        raise ValueError(f"Unknown trade action: {value!r}")

    @property
    def exit_action(self) -> str:
        return "sell" if self is Direction.LONG else "buy"


class TradeStatus(str, Enum):
    OPEN = "open"
    PARTIALLY_CLOSED = "partially_closed"
    CLOSED = "closed"


@dataclass(frozen=True)
class PartialExit:
    """One exit fill of a trade."""
    action: str  # 'sell' for a long, 'buy' for a short
    datetime: pd.Timestamp
    quantity: float
    price: float
    fee: float = 0.0


@dataclass(frozen=True)
class Trade:
    """Represents a journal trade, open or (partially) closed."""
    trade_id: str
    instrument: str
    direction: Direction
    entry_price: float
    entry_time: Optional[pd.Timestamp]
    quantity: float
    exit_price: Optional[float] = None
    exit_time: Optional[pd.Timestamp] = None
    contract_multiplier: float = 1.0
    stop_loss: Optional[float] = None
    target: Optional[float] = None
    commission: float = 0.0
    fees: float = 0.0
    status: TradeStatus = TradeStatus.CLOSED
    partial_exits: Tuple[PartialExit, ...] = ()

    @property
    def exited_quantity(self) -> float:
        """Quantity closed through partial exits (zero for single-fill trades)."""
        return sum(pe.quantity for pe in self.partial_exits)

    @property
    def remaining_quantity(self) -> float:
        """Quantity still held after the recorded exits."""
        if self.partial_exits:
            return max(self.quantity - self.exited_quantity, 0.0)
        if self.status is TradeStatus.OPEN or self.exit_price is None:
            return self.quantity
        return 0.0
