import os
import sys
import pandas as pd

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tradelens.journal.models import Direction, Trade, TradeStatus
from tradelens.reporting.metrics import compute_metrics_report, compute_streaks

import unittest


START = pd.Timestamp("2024-01-01 09:00", tz="UTC")


def _closed(trade_id: str, pnl: float, minutes: int, entry_time=None) -> Trade:
    entry = START + pd.Timedelta(minutes=minutes) if entry_time is None else entry_time
    return Trade(
        trade_id=trade_id,
        instrument="EURUSD",
        direction=Direction.LONG,
        entry_price=100.0,
        entry_time=entry,
        quantity=1.0,
        exit_price=100.0 + pnl,
        exit_time=None,
        status=TradeStatus.CLOSED,
    )


class TestStreaks(unittest.TestCase):
    def test_breakeven_resets_both_streaks(self) -> None:
        trades = [
            _closed("1", 5.0, 0),
            _closed("2", 5.0, 10),
            _closed("3", 0.0, 20),
            _closed("4", 5.0, 30),
        ]
        report = compute_metrics_report(trades)
        self.assertEqual(report.max_consecutive_wins, 2)
        self.assertEqual(report.current_win_streak, 1)
        self.assertEqual(report.current_loss_streak, 0)

    def test_skip_policy_carries_streak_over_breakeven(self) -> None:
        trades = [
            _closed("1", 5.0, 0),
            _closed("2", 5.0, 10),
            _closed("3", 0.0, 20),
            _closed("4", 5.0, 30),
        ]
        report = compute_metrics_report(trades, breakeven_policy="skip")
        self.assertEqual(report.max_consecutive_wins, 3)
        self.assertEqual(report.current_win_streak, 3)

    def test_loss_streaks(self) -> None:
        stats = compute_streaks([-1.0, -2.0, 3.0, -1.0, -1.0, -1.0, 0.0, -4.0])
        self.assertEqual(stats.max_losses, 3)
        self.assertEqual(stats.current_losses, 1)
        self.assertEqual(stats.max_wins, 1)
        self.assertEqual(stats.current_wins, 0)

    def test_streaks_follow_entry_time_not_input_order(self) -> None:
        trades = [
            _closed("late-loss", -5.0, 30),
            _closed("win-a", 5.0, 0),
            _closed("win-b", 5.0, 10),
            _closed("win-c", 5.0, 20),
        ]
        report = compute_metrics_report(trades)
        self.assertEqual(report.max_consecutive_wins, 3)
        self.assertEqual(report.current_win_streak, 0)
        self.assertEqual(report.current_loss_streak, 1)

    def test_ties_broken_by_trade_id(self) -> None:
        same_time = START + pd.Timedelta(hours=1)
        forward = [_closed("a", 5.0, 0, same_time), _closed("b", -5.0, 0, same_time)]
        backward = list(reversed(forward))
        first = compute_metrics_report(forward)
        second = compute_metrics_report(backward)
        self.assertEqual(first.current_loss_streak, 1)
        self.assertEqual(first.current_loss_streak, second.current_loss_streak)
        self.assertEqual(first.current_win_streak, second.current_win_streak)

    def test_trades_without_entry_time_excluded(self) -> None:
        undated = Trade(
            trade_id="undated",
            instrument="EURUSD",
            direction=Direction.LONG,
            entry_price=100.0,
            entry_time=None,
            quantity=1.0,
            exit_price=90.0,
            status=TradeStatus.CLOSED,
        )
        trades = [_closed("1", 5.0, 0), undated, _closed("2", 5.0, 10)]
        report = compute_metrics_report(trades)
        self.assertEqual(report.max_consecutive_wins, 2)
        self.assertEqual(report.max_consecutive_losses, 0)
        # Still counted as a loss and in the daily-independent totals
        self.assertEqual(report.loss_count, 1)
        self.assertAlmostEqual(report.total_net_pnl, 0.0)
        self.assertAlmostEqual(sum(report.daily_pnl.values()), 10.0)

    def test_unknown_policy_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compute_streaks([1.0], breakeven_policy="ignore")
        with self.assertRaises(ValueError):
            compute_metrics_report([], breakeven_policy="ignore")


if __name__ == '__main__':
    unittest.main()
