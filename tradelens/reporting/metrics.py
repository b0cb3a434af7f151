"""
Performance metrics calculations.

This module derives the journal's summary statistics from a list of
trades: P&L totals and ratios, win/loss counts, consecutive streaks,
hold-time averages, daily aggregation and R-multiple averages.  The
computation is a pure function of its inputs; it keeps no state
between calls and never mutates the trades it is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..journal.models import Trade
from ..journal.validation import MalformedTradeError, validate_trade
from ..utils.timeutils import DateBucketFn, make_date_bucket, to_timezone
from .trade_metrics import Outcome, TradeMetrics, compute_trade_metrics


logger = logging.getLogger(__name__)

BREAKEVEN_POLICIES = ("reset", "skip")

# (label, lower bound inclusive, upper bound exclusive) in minutes
DURATION_BUCKETS: Tuple[Tuple[str, float, float], ...] = (
    ("Under 1 min", 0, 1),
    ("1 to 5 mins", 1, 5),
    ("5 to 15 mins", 5, 15),
    ("15 to 30 mins", 15, 30),
    ("30 to 60 mins", 30, 60),
    ("1 to 2 hours", 60, 120),
    ("2 to 4 hours", 120, 240),
    ("Over 4 hours", 240, math.inf),
)


@dataclass(frozen=True)
class StreakStats:
    """Running and maximal win/loss streaks over a chronological sequence."""
    current_wins: int = 0
    current_losses: int = 0
    max_wins: int = 0
    max_losses: int = 0


@dataclass(frozen=True)
class InstrumentStats:
    instrument: str
    net_pnl: float
    gross_profit: float
    gross_loss: float  # magnitude
    trade_count: int
    win_count: int


@dataclass(frozen=True)
class DurationBucketStats:
    label: str
    net_pnl: float
    trade_count: int
    win_count: int


@dataclass(frozen=True)
class MetricsReport:
    """Aggregates computed from one collection of trades.

    Every numeric field is finite.  Counts start at zero and money or
    ratio fields at ``0.0`` when there is nothing to aggregate.  Money
    totals, commissions and fees included, cover realized trades only, so
    ``total_gross_pnl - total_commissions - total_fees == total_net_pnl``.
    """

    total_trades: int = 0
    open_count: int = 0
    win_count: int = 0
    loss_count: int = 0
    breakeven_count: int = 0
    win_rate: float = 0.0
    loss_rate: float = 0.0
    breakeven_rate: float = 0.0

    total_gross_pnl: float = 0.0
    total_net_pnl: float = 0.0
    average_trade_pnl: float = 0.0
    total_commissions: float = 0.0
    total_fees: float = 0.0
    profit_factor: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0

    current_win_streak: int = 0
    current_loss_streak: int = 0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    average_hold_time_minutes: float = 0.0
    average_hold_time_winning: float = 0.0
    average_hold_time_losing: float = 0.0
    average_hold_time_breakeven: float = 0.0

    trading_days_count: int = 0
    winning_days_count: int = 0
    losing_days_count: int = 0
    breakeven_days_count: int = 0
    current_winning_days_streak: int = 0
    current_losing_days_streak: int = 0
    max_consecutive_winning_days: int = 0
    max_consecutive_losing_days: int = 0
    average_daily_pnl: float = 0.0
    average_winning_day_pnl: float = 0.0
    average_losing_day_pnl: float = 0.0
    largest_profitable_day: float = 0.0
    largest_losing_day: float = 0.0

    average_realized_r_multiple: float = 0.0
    average_planned_r_multiple: float = 0.0
    trade_expectancy: float = 0.0

    trades: Tuple[TradeMetrics, ...] = ()
    daily_pnl: Dict[Any, float] = field(default_factory=dict)
    cumulative_pnl: Tuple[Tuple[Any, float], ...] = ()
    instruments: Tuple[InstrumentStats, ...] = ()
    duration_buckets: Tuple[DurationBucketStats, ...] = ()
    skipped_trade_ids: Tuple[str, ...] = ()


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _rate(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def compute_profit_factor(pnls: Iterable[float]) -> float:
    """Gross profit divided by gross loss magnitude.

    With no losses the gross profit itself is returned (``0.0`` when
    there is no profit either), keeping the value finite and sortable.
    """
    values = list(pnls)
    profit = sum(v for v in values if v > 0)
    loss = abs(sum(v for v in values if v < 0))
    if loss == 0:
        return profit if profit > 0 else 0.0
    return profit / loss


def compute_streaks(pnls: Iterable[float], breakeven_policy: str = "reset") -> StreakStats:
    """Count consecutive winners and losers in chronological P&L values.

    Parameters
    ----------
    pnls : iterable of float
        Net P&L values already ordered chronologically.
    breakeven_policy : str
        ``reset`` clears both running streaks on a zero value; ``skip``
        ignores zero values so a streak carries across them.

    Returns
    -------
    StreakStats
        Final running streaks and their maxima.
    """
    if breakeven_policy not in BREAKEVEN_POLICIES:
        raise ValueError(f"Unknown breakeven policy: {breakeven_policy!r}")
    wins = losses = max_wins = max_losses = 0
    for pnl in pnls:
        if pnl > 0:
            wins += 1
            losses = 0
            max_wins = max(max_wins, wins)
        elif pnl < 0:
            losses += 1
            wins = 0
            max_losses = max(max_losses, losses)
        elif breakeven_policy == "reset":
            wins = losses = 0
    return StreakStats(current_wins=wins, current_losses=losses, max_wins=max_wins, max_losses=max_losses)


def _chronological(metrics: Iterable[TradeMetrics]) -> List[TradeMetrics]:
    """Trades with an entry time, ordered by entry time then trade id."""
    dated = [m for m in metrics if m.entry_time is not None]
    return sorted(dated, key=lambda m: (to_timezone(m.entry_time, "UTC"), m.trade_id))


def _instrument_breakdown(realized: Sequence[TradeMetrics]) -> Tuple[InstrumentStats, ...]:
    grouped: Dict[str, List[float]] = {}
    for m in realized:
        grouped.setdefault(m.instrument, []).append(m.net_pnl)
    stats = [
        InstrumentStats(
            instrument=name,
            net_pnl=sum(pnls),
            gross_profit=sum(p for p in pnls if p > 0),
            gross_loss=abs(sum(p for p in pnls if p < 0)),
            trade_count=len(pnls),
            win_count=sum(1 for p in pnls if p > 0),
        )
        for name, pnls in grouped.items()
    ]
    stats.sort(key=lambda s: (-abs(s.net_pnl), s.instrument))
    return tuple(stats)


def _duration_breakdown(realized: Sequence[TradeMetrics]) -> Tuple[DurationBucketStats, ...]:
    buckets = []
    for label, low, high in DURATION_BUCKETS:
        members = [
            m.net_pnl
            for m in realized
            if m.hold_time_minutes is not None and low <= m.hold_time_minutes < high
        ]
        buckets.append(
            DurationBucketStats(
                label=label,
                net_pnl=sum(members),
                trade_count=len(members),
                win_count=sum(1 for p in members if p > 0),
            )
        )
    return tuple(buckets)


def compute_metrics_report(
    trades: Iterable[Trade],
    date_bucket_fn: Optional[DateBucketFn] = None,
    breakeven_policy: str = "reset",
) -> MetricsReport:
    """Compute the full performance report for a collection of trades.

    Parameters
    ----------
    trades : iterable of Trade
        Journal trades in any order.  Malformed trades are skipped and
        their ids listed in ``skipped_trade_ids``.
    date_bucket_fn : callable, optional
        Maps an entry timestamp to a sortable date key.  Defaults to the
        UTC calendar date; pass `make_date_bucket(tz)` for a trader's
        own timezone.
    breakeven_policy : str
        How breakeven trades and days affect streaks (``reset`` or
        ``skip``).

    Returns
    -------
    MetricsReport
        A fresh report; the same input always gives the same report.
    """
    if breakeven_policy not in BREAKEVEN_POLICIES:
        raise ValueError(f"Unknown breakeven policy: {breakeven_policy!r}")
    bucket = date_bucket_fn or make_date_bucket("UTC")

    valid: List[Trade] = []
    skipped: List[str] = []
    for trade in trades:
        try:
            validate_trade(trade)
        except MalformedTradeError as exc:
            logger.warning("Skipping trade: %s", exc)
            skipped.append(trade.trade_id)
            continue
        valid.append(trade)

    per_trade = [compute_trade_metrics(t) for t in valid]
    realized = [m for m in per_trade if m.has_pnl]
    winners = [m for m in realized if m.outcome is Outcome.WIN]
    losers = [m for m in realized if m.outcome is Outcome.LOSS]
    scratches = [m for m in realized if m.outcome is Outcome.BREAKEVEN]

    net_pnls = [m.net_pnl for m in realized]
    total_net = sum(net_pnls)
    win_pnls = [m.net_pnl for m in winners]
    loss_pnls = [m.net_pnl for m in losers]

    chronological = _chronological(realized)
    trade_streaks = compute_streaks((m.net_pnl for m in chronological), breakeven_policy)

    def hold_times(group: Sequence[TradeMetrics]) -> List[float]:
        return [m.hold_time_minutes for m in group if m.hold_time_minutes is not None and m.hold_time_minutes > 0]

    daily: Dict[Any, float] = {}
    for m in chronological:
        key = bucket(m.entry_time)
        daily[key] = daily.get(key, 0.0) + m.net_pnl
    daily_pnl = dict(sorted(daily.items(), key=lambda item: item[0]))
    day_values = list(daily_pnl.values())
    winning_days = [v for v in day_values if v > 0]
    losing_days = [v for v in day_values if v < 0]
    day_streaks = compute_streaks(day_values, breakeven_policy)

    cumulative: List[Tuple[Any, float]] = []
    running = 0.0
    for key, value in daily_pnl.items():
        running += value
        cumulative.append((key, running))

    r_values = [m.r_multiple for m in realized if m.r_multiple is not None]
    planned_values = [m.planned_r_multiple for m in per_trade if m.planned_r_multiple is not None]
    average_r = _mean(r_values)

    report = MetricsReport(
        total_trades=len(per_trade),
        open_count=len(per_trade) - len(realized),
        win_count=len(winners),
        loss_count=len(losers),
        breakeven_count=len(scratches),
        win_rate=_rate(len(winners), len(realized)),
        loss_rate=_rate(len(losers), len(realized)),
        breakeven_rate=_rate(len(scratches), len(realized)),
        total_gross_pnl=sum(m.gross_pnl for m in realized),
        total_net_pnl=total_net,
        average_trade_pnl=total_net / len(realized) if realized else 0.0,
        total_commissions=sum(m.commission for m in realized),
        total_fees=sum(m.total_fees for m in realized),
        profit_factor=compute_profit_factor(net_pnls),
        largest_win=max(win_pnls) if win_pnls else 0.0,
        largest_loss=min(loss_pnls) if loss_pnls else 0.0,
        average_win=_mean(win_pnls),
        average_loss=abs(_mean(loss_pnls)),
        current_win_streak=trade_streaks.current_wins,
        current_loss_streak=trade_streaks.current_losses,
        max_consecutive_wins=trade_streaks.max_wins,
        max_consecutive_losses=trade_streaks.max_losses,
        average_hold_time_minutes=_mean(hold_times(realized)),
        average_hold_time_winning=_mean(hold_times(winners)),
        average_hold_time_losing=_mean(hold_times(losers)),
        average_hold_time_breakeven=_mean(hold_times(scratches)),
        trading_days_count=len(daily_pnl),
        winning_days_count=len(winning_days),
        losing_days_count=len(losing_days),
        breakeven_days_count=len(day_values) - len(winning_days) - len(losing_days),
        current_winning_days_streak=day_streaks.current_wins,
        current_losing_days_streak=day_streaks.current_losses,
        max_consecutive_winning_days=day_streaks.max_wins,
        max_consecutive_losing_days=day_streaks.max_losses,
        average_daily_pnl=_mean(day_values),
        average_winning_day_pnl=_mean(winning_days),
        average_losing_day_pnl=_mean(losing_days),
        largest_profitable_day=max(winning_days) if winning_days else 0.0,
        largest_losing_day=min(losing_days) if losing_days else 0.0,
        average_realized_r_multiple=average_r,
        average_planned_r_multiple=_mean(planned_values),
        # Expectancy is reported as the average realized R-multiple.
        trade_expectancy=average_r,
        trades=tuple(per_trade),
        daily_pnl=daily_pnl,
        cumulative_pnl=tuple(cumulative),
        instruments=_instrument_breakdown(realized),
        duration_buckets=_duration_breakdown(realized),
        skipped_trade_ids=tuple(skipped),
    )
    logger.debug(
        "Computed metrics for %d trades (%d realized, %d skipped)",
        report.total_trades,
        len(realized),
        len(skipped),
    )
    return report


def report_summary(report: MetricsReport, decimals: Optional[int] = 2) -> Dict[str, Any]:
    """Flatten the scalar fields of a report into a dictionary.

    Floats are rounded to `decimals` places (no rounding when ``None``);
    the per-trade, daily and breakdown collections are left out.
    """
    summary: Dict[str, Any] = {}
    for f in fields(report):
        value = getattr(report, f.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if isinstance(value, float) and decimals is not None:
            value = round(value, decimals)
        summary[f.name] = value
    return summary
