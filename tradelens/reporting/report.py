"""
Report generation utilities.

This module turns a `MetricsReport` into files a dashboard or export
job can pick up: CSV files of per-trade metrics and daily P&L, a JSON
summary of the aggregate metrics and a PNG chart of cumulative P&L.
"""

from __future__ import annotations

import os
import json
import logging
from typing import Dict, Optional
import pandas as pd
import matplotlib

# Use non‑interactive backend for environments without display
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .metrics import MetricsReport, report_summary


logger = logging.getLogger(__name__)


def _iso(ts: Optional[pd.Timestamp]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


def trade_metrics_frame(report: MetricsReport) -> pd.DataFrame:
    """One row per trade with its derived metrics."""
    rows = [
        {
            'trade_id': m.trade_id,
            'instrument': m.instrument,
            'direction': m.direction.value,
            'timestamp_entry': _iso(m.entry_time),
            'timestamp_exit': _iso(m.exit_time),
            'exit_price': m.exit_price,
            'quantity': m.quantity_used,
            'remaining_quantity': m.remaining_quantity,
            'commission': m.commission,
            'fees': m.total_fees,
            'gross_pnl': m.gross_pnl,
            'net_pnl': m.net_pnl,
            'percent_gain': m.percent_gain,
            'r_multiple': m.r_multiple,
            'planned_r_multiple': m.planned_r_multiple,
            'hold_time_minutes': m.hold_time_minutes,
            'outcome': m.outcome.value,
        }
        for m in report.trades
    ]
    return pd.DataFrame(rows)


def daily_pnl_frame(report: MetricsReport) -> pd.DataFrame:
    """Daily net P&L with its running cumulative total."""
    rows = [
        {'date': str(date), 'net_pnl': report.daily_pnl[date], 'cumulative_pnl': cumulative}
        for date, cumulative in report.cumulative_pnl
    ]
    return pd.DataFrame(rows, columns=['date', 'net_pnl', 'cumulative_pnl'])


def generate_metrics_report(
    report: MetricsReport,
    out_dir: str = "results",
    decimals: int = 2,
    plot: bool = True,
) -> Dict[str, str]:
    """Write report files for a metrics computation.

    Creates the output directory if it does not exist and writes the
    following files:

    - `trade_metrics.csv` – per-trade P&L, R-multiple and outcome
    - `daily_pnl.csv` – net and cumulative P&L per trading day
    - `summary.json` – aggregate metrics plus instrument and duration breakdowns
    - `cumulative_pnl.png` – line chart of cumulative P&L (when `plot` is set)

    Returns
    -------
    dict
        Mapping of artefact name to the path written.
    """
    os.makedirs(out_dir, exist_ok=True)
    paths: Dict[str, str] = {}

    trades_path = os.path.join(out_dir, 'trade_metrics.csv')
    trade_metrics_frame(report).to_csv(trades_path, index=False)
    paths['trade_metrics'] = trades_path

    df_daily = daily_pnl_frame(report)
    daily_path = os.path.join(out_dir, 'daily_pnl.csv')
    df_daily.to_csv(daily_path, index=False)
    paths['daily_pnl'] = daily_path

    summary = report_summary(report, decimals)
    summary['instruments'] = [
        {
            'instrument': s.instrument,
            'net_pnl': round(s.net_pnl, decimals),
            'gross_profit': round(s.gross_profit, decimals),
            'gross_loss': round(s.gross_loss, decimals),
            'trades': s.trade_count,
            'wins': s.win_count,
        }
        for s in report.instruments
    ]
    summary['duration_buckets'] = [
        {'label': b.label, 'net_pnl': round(b.net_pnl, decimals), 'trades': b.trade_count, 'wins': b.win_count}
        for b in report.duration_buckets
    ]
    summary['skipped_trade_ids'] = list(report.skipped_trade_ids)
    summary_path = os.path.join(out_dir, 'summary.json')
    with open(summary_path, 'w', encoding='utf-8') as fh:
        json.dump(summary, fh, indent=2, ensure_ascii=False)
    paths['summary'] = summary_path

    if plot:
        fig, ax = plt.subplots(figsize=(10, 4))
        if not df_daily.empty:
            ax.plot(pd.to_datetime(df_daily['date']), df_daily['cumulative_pnl'], linewidth=1.5)
            ax.axhline(0.0, color='grey', linewidth=0.8)
            ax.set_title('Cumulative P&L')
            ax.set_xlabel('Date')
            ax.set_ylabel('P&L')
            fig.autofmt_xdate()
        fig.tight_layout()
        plot_path = os.path.join(out_dir, 'cumulative_pnl.png')
        fig.savefig(plot_path)
        plt.close(fig)
        paths['cumulative_pnl'] = plot_path

    logger.info("Wrote %d report files to %s", len(paths), out_dir)
    return paths
