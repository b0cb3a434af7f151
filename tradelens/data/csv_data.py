"""
CSV trade loader.

This module loads journal trades from a CSV export.  The expected
columns are the journal's own:

```
trade_id,instrument,action,entry_price,quantity,entry_time,exit_price,exit_time,sl,target,commission,fees,contract_multiplier,status,partial_exits
```

Only `instrument`, `action`, `entry_price`, `quantity` and an id column
(`trade_id` or `id`) are required.  `partial_exits` holds a JSON array
of exit fills.  Timestamps without a timezone are read as UTC.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List
import pandas as pd

from ..journal.models import Trade
from .records import trades_from_frame


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("instrument", "action", "entry_price", "quantity")


class TradeCSVLoader:
    """Load journal trades from a CSV file.

    Parameters
    ----------
    path : str
        Location of the CSV export.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def load(self) -> List[Trade]:
        if not self.path.exists():
            raise FileNotFoundError(f"Trades CSV not found: {self.path}")

        # Ids and JSON columns must stay strings
        df = pd.read_csv(self.path, dtype={"trade_id": str, "id": str, "partial_exits": str})
        df.columns = [str(c).strip() for c in df.columns]

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if "trade_id" not in df.columns and "id" not in df.columns:
            missing.append("trade_id")
        if missing:
            raise ValueError(
                f"Unrecognized trades CSV {self.path}. Missing columns: {missing}. "
                f"Found columns: {list(df.columns)}"
            )

        trades = trades_from_frame(df)
        logger.info("Loaded %d trades from %s", len(trades), self.path)
        return trades
