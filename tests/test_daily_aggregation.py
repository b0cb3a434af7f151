import os
import sys
import pandas as pd

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tradelens.journal.models import Direction, Trade, TradeStatus
from tradelens.reporting.metrics import compute_metrics_report
from tradelens.utils.timeutils import make_date_bucket, minutes_between, to_timestamp

import unittest


def _closed(trade_id: str, pnl: float, entry: str) -> Trade:
    return Trade(
        trade_id=trade_id,
        instrument="NQ",
        direction=Direction.LONG,
        entry_price=100.0,
        entry_time=pd.Timestamp(entry, tz="UTC"),
        quantity=1.0,
        exit_price=100.0 + pnl,
        status=TradeStatus.CLOSED,
    )


class TestDailyAggregation(unittest.TestCase):
    def setUp(self) -> None:
        self.trades = [
            _closed("d1a", 100.0, "2024-01-01 10:00"),
            _closed("d1b", -30.0, "2024-01-01 15:00"),
            _closed("d2", -50.0, "2024-01-02 10:00"),
            _closed("d3a", 20.0, "2024-01-03 10:00"),
            _closed("d3b", -20.0, "2024-01-03 11:00"),
            _closed("d4", 40.0, "2024-01-04 10:00"),
        ]

    def test_day_counts_and_averages(self) -> None:
        report = compute_metrics_report(self.trades)
        self.assertEqual(
            report.daily_pnl,
            {"2024-01-01": 70.0, "2024-01-02": -50.0, "2024-01-03": 0.0, "2024-01-04": 40.0},
        )
        self.assertEqual(report.trading_days_count, 4)
        self.assertEqual(report.winning_days_count, 2)
        self.assertEqual(report.losing_days_count, 1)
        self.assertEqual(report.breakeven_days_count, 1)
        self.assertAlmostEqual(report.average_daily_pnl, 15.0)
        self.assertAlmostEqual(report.average_winning_day_pnl, 55.0)
        self.assertAlmostEqual(report.average_losing_day_pnl, -50.0)
        self.assertAlmostEqual(report.largest_profitable_day, 70.0)
        self.assertAlmostEqual(report.largest_losing_day, -50.0)

    def test_day_streaks_reset_on_breakeven_day(self) -> None:
        report = compute_metrics_report(self.trades)
        self.assertEqual(report.max_consecutive_winning_days, 1)
        self.assertEqual(report.max_consecutive_losing_days, 1)
        self.assertEqual(report.current_winning_days_streak, 1)
        skipped = compute_metrics_report(self.trades, breakeven_policy="skip")
        self.assertEqual(skipped.max_consecutive_winning_days, 1)
        self.assertEqual(skipped.current_winning_days_streak, 1)

    def test_cumulative_pnl_follows_dates(self) -> None:
        report = compute_metrics_report(list(reversed(self.trades)))
        self.assertEqual(
            report.cumulative_pnl,
            (("2024-01-01", 70.0), ("2024-01-02", 20.0), ("2024-01-03", 20.0), ("2024-01-04", 60.0)),
        )

    def test_bucketing_uses_supplied_timezone(self) -> None:
        trades = [_closed("late", 10.0, "2024-01-01 23:30")]
        utc = compute_metrics_report(trades)
        tokyo = compute_metrics_report(trades, date_bucket_fn=make_date_bucket("Asia/Tokyo"))
        new_york = compute_metrics_report(trades, date_bucket_fn=make_date_bucket("America/New_York"))
        self.assertEqual(list(utc.daily_pnl), ["2024-01-01"])
        self.assertEqual(list(tokyo.daily_pnl), ["2024-01-02"])
        self.assertEqual(list(new_york.daily_pnl), ["2024-01-01"])

    def test_custom_bucket_function(self) -> None:
        by_month = compute_metrics_report(self.trades, date_bucket_fn=lambda ts: ts.strftime("%Y-%m"))
        self.assertEqual(by_month.daily_pnl, {"2024-01": 60.0})
        self.assertEqual(by_month.trading_days_count, 1)

    def test_open_trades_do_not_create_days(self) -> None:
        open_trade = Trade(
            trade_id="open",
            instrument="NQ",
            direction=Direction.SHORT,
            entry_price=100.0,
            entry_time=pd.Timestamp("2024-02-01 10:00", tz="UTC"),
            quantity=1.0,
            status=TradeStatus.OPEN,
        )
        report = compute_metrics_report(self.trades + [open_trade])
        self.assertNotIn("2024-02-01", report.daily_pnl)
        self.assertEqual(report.breakeven_days_count, 1)


class TestTimeUtils(unittest.TestCase):
    def test_naive_timestamps_read_as_utc(self) -> None:
        ts = to_timestamp("2024-01-01 10:00")
        self.assertEqual(str(ts.tz), "UTC")
        self.assertEqual(ts, pd.Timestamp("2024-01-01 10:00", tz="UTC"))

    def test_blank_timestamps(self) -> None:
        self.assertIsNone(to_timestamp(None))
        self.assertIsNone(to_timestamp(""))
        self.assertIsNone(to_timestamp(float("nan")))
        self.assertIsNone(to_timestamp(pd.NaT))

    def test_minutes_between_mixed_timezones(self) -> None:
        start = pd.Timestamp("2024-01-01 10:00", tz="Europe/Brussels")
        end = pd.Timestamp("2024-01-01 09:45", tz="UTC")
        self.assertAlmostEqual(minutes_between(start, end), 45.0)
        self.assertIsNone(minutes_between(None, end))


if __name__ == '__main__':
    unittest.main()
