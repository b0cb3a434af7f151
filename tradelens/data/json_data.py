"""
JSON trade loader.

Reads a JSON file holding an array of journal trade objects (or an
object with a ``trades`` array, as written by the journal's export).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from ..journal.models import Trade
from .csv_data import TradeCSVLoader
from .records import trade_from_record


logger = logging.getLogger(__name__)


class TradeJSONLoader:
    """Load journal trades from a JSON file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def load(self) -> List[Trade]:
        if not self.path.exists():
            raise FileNotFoundError(f"Trades JSON not found: {self.path}")
        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        if isinstance(raw, dict):
            raw = raw.get("trades")
        if not isinstance(raw, list):
            raise ValueError(f"Expected a list of trades in {self.path}")
        trades = [trade_from_record(rec) for rec in raw]
        logger.info("Loaded %d trades from %s", len(trades), self.path)
        return trades


def load_trades(path: str) -> List[Trade]:
    """Load trades from a ``.json`` or ``.csv`` file, chosen by suffix."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return TradeJSONLoader(path).load()
    if suffix == ".csv":
        return TradeCSVLoader(path).load()
    raise ValueError(f"Unsupported trades file type: {path}")
