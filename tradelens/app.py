"""
Application entry point.

This module defines a small command-line interface that loads a
journal export, computes the performance metrics report and writes
the report artefacts.  Configuration comes from `config.yaml`; the
command-line options override the corresponding settings.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config.schema import Config, load_config
from .data.json_data import load_trades
from .reporting.metrics import compute_metrics_report
from .reporting.report import generate_metrics_report
from .utils.timeutils import make_date_bucket


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Parse command-line arguments and run the requested command."""
    parser = argparse.ArgumentParser(description="Trade journal performance metrics")
    parser.add_argument('command', choices=['report'], help="Command to run")
    parser.add_argument('trades', nargs='?', help="Trades file (.csv or .json); defaults to data.trades_path")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('--out', help="Output directory; defaults to report.out_dir")
    parser.add_argument('--timezone', help="IANA timezone for daily buckets; defaults to metrics.timezone")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if os.path.exists(args.config):
        config = load_config(args.config)
    else:
        logging.info("Config file %s not found, using defaults", args.config)
        config = Config()
    if args.trades:
        config.data.trades_path = args.trades
    if args.out:
        config.report.out_dir = args.out
    if args.timezone:
        config.metrics.timezone = args.timezone

    trades = load_trades(config.data.trades_path)
    report = compute_metrics_report(
        trades,
        date_bucket_fn=make_date_bucket(config.metrics.timezone),
        breakeven_policy=config.metrics.breakeven_policy,
    )
    if report.skipped_trade_ids:
        logging.warning("%d malformed trades were skipped", len(report.skipped_trade_ids))
    generate_metrics_report(
        report,
        out_dir=config.report.out_dir,
        decimals=config.report.decimals,
        plot=config.report.plot,
    )
    logging.info(
        "Report complete: %d trades, net P&L %.2f. Results saved to '%s'.",
        report.total_trades,
        report.total_net_pnl,
        config.report.out_dir,
    )
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
