"""
Conversion of raw journal rows into `Trade` objects.

Rows come from the journal's storage export, either as JSON objects or
CSV lines, using the journal column names (``action``, ``sl``,
``partial_exits`` and so on).  Partial exits may be an embedded list
or a JSON-encoded string.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from ..journal.models import Direction, PartialExit, Trade, TradeStatus
from ..utils.timeutils import to_timestamp


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _optional_float(value: Any) -> Optional[float]:
    return None if _is_blank(value) else float(value)


def _float(value: Any, default: float) -> float:
    return default if _is_blank(value) else float(value)


def parse_partial_exits(raw: Any) -> List[Dict[str, Any]]:
    """Decode the ``partial_exits`` column into a list of dictionaries."""
    if _is_blank(raw):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"partial_exits is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise ValueError(f"partial_exits must be a list, got {type(raw).__name__}")
    return raw


def _partial_exit_from_record(raw: Mapping[str, Any]) -> PartialExit:
    when = to_timestamp(raw.get("datetime"))
    if when is None:
        raise ValueError("partial exit is missing its datetime")
    return PartialExit(
        action=str(raw.get("action", "")).strip().lower(),
        datetime=when,
        quantity=float(raw["quantity"]),
        price=float(raw["price"]),
        fee=_float(raw.get("fee"), 0.0),
    )


def _derive_status(quantity: float, exit_price: Optional[float], exits: List[PartialExit]) -> TradeStatus:
    if exits:
        exited = sum(pe.quantity for pe in exits)
        return TradeStatus.CLOSED if exited >= quantity else TradeStatus.PARTIALLY_CLOSED
    return TradeStatus.OPEN if exit_price is None else TradeStatus.CLOSED


def trade_from_record(record: Mapping[str, Any]) -> Trade:
    """Build a `Trade` from one journal row.

    Parameters
    ----------
    record : mapping
        A row with at least ``instrument``, ``action``, ``entry_price``
        and ``quantity``.  The id is read from ``trade_id`` or ``id``.

    Returns
    -------
    Trade
        The parsed trade.  When ``status`` is absent it is derived from
        the exit price and partial exits.

    Raises
    ------
    ValueError
        If a required column is missing or a value cannot be parsed.
    """
    trade_id = record.get("trade_id", record.get("id"))
    if _is_blank(trade_id):
        raise ValueError(f"Trade record has no id: {dict(record)}")
    trade_id = str(trade_id)
    try:
        for column in ("instrument", "action", "entry_price", "quantity"):
            if _is_blank(record.get(column)):
                raise ValueError(f"missing required column '{column}'")

        exits = tuple(_partial_exit_from_record(pe) for pe in parse_partial_exits(record.get("partial_exits")))
        quantity = float(record["quantity"])
        exit_price = _optional_float(record.get("exit_price"))
        raw_status = record.get("status")
        status = (
            TradeStatus(str(raw_status).strip().lower())
            if not _is_blank(raw_status)
            else _derive_status(quantity, exit_price, list(exits))
        )
        return Trade(
            trade_id=trade_id,
            instrument=str(record["instrument"]),
            direction=Direction.parse(record["action"]),
            entry_price=float(record["entry_price"]),
            entry_time=to_timestamp(record.get("entry_time")),
            quantity=quantity,
            exit_price=exit_price,
            exit_time=to_timestamp(record.get("exit_time")),
            contract_multiplier=_float(record.get("contract_multiplier"), 1.0),
            stop_loss=_optional_float(record.get("sl", record.get("stop_loss"))),
            target=_optional_float(record.get("target")),
            commission=_float(record.get("commission"), 0.0),
            fees=_float(record.get("fees"), 0.0),
            status=status,
            partial_exits=exits,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Could not parse trade {trade_id}: {exc}") from exc


def trades_from_frame(df: pd.DataFrame) -> List[Trade]:
    """Parse every row of a DataFrame of journal trades."""
    records = df.to_dict(orient="records")
    return [trade_from_record(rec) for rec in records]
