from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping

from bot_analytics.config.app_config import AnalyticsSettings
from bot_analytics.models import Trade

MS_PER_DAY = 86_400_000.0
DAYS_PER_YEAR = 365.0


@dataclass(frozen=True)
class ReturnSummary:
    twr: float
    sortino: float
    daily_returns: list[float]


@dataclass(frozen=True)
class TimeSpan:
    span_ms: float
    years: float
    days: float


def daily_pnl_buckets(trades: Iterable[Trade]) -> dict[str, float]:
    buckets: dict[str, float] = {}
    for trade in trades:
        day = trade.exit_day
        buckets[day] = buckets.get(day, 0.0) + trade.profit_loss
    return buckets


def compute_time_span(trades: Iterable[Trade]) -> TimeSpan:
    ordered = sorted(trades, key=lambda trade: trade.entry_time)
    if not ordered:
        return TimeSpan(span_ms=0.0, years=0.0, days=0.0)
    elapsed = (ordered[-1].exit_time - ordered[0].entry_time).total_seconds() * 1000.0
    span_ms = max(elapsed, MS_PER_DAY)
    return TimeSpan(
        span_ms=span_ms,
        years=span_ms / (DAYS_PER_YEAR * MS_PER_DAY),
        days=span_ms / MS_PER_DAY,
    )


def daily_risk_free_rate(settings: AnalyticsSettings) -> float:
    return (1.0 + settings.risk_free_rate) ** (1.0 / settings.trading_days) - 1.0


def compute_twr_and_sortino(
    daily_pnl: Mapping[str, float],
    starting_equity: float,
    settings: AnalyticsSettings,
) -> ReturnSummary:
    """Compound each day's return on the equity at the start of that day.

    Date keys are zero-padded ``YYYY-MM-DD`` strings, so a lexical sort is
    chronological.
    """
    equity = starting_equity
    total_return = 1.0
    daily_returns: list[float] = []
    for day in sorted(daily_pnl):
        pnl = daily_pnl[day]
        day_return = safe_divide(pnl, equity)
        daily_returns.append(day_return)
        total_return *= 1.0 + day_return
        equity += pnl

    daily_rfr = daily_risk_free_rate(settings)
    downside = [(value - daily_rfr) ** 2 for value in daily_returns if value < daily_rfr]
    downside_dev = math.sqrt(sum(downside) / len(downside)) if downside else 0.0
    avg_return = sum(daily_returns) / (len(daily_returns) or 1)
    sortino = 0.0
    if downside_dev != 0:
        sortino = (avg_return - daily_rfr) / downside_dev * math.sqrt(settings.trading_days)

    return ReturnSummary(twr=total_return - 1.0, sortino=sortino, daily_returns=daily_returns)


def bot_first_trade_times(all_trades: Iterable[Trade]) -> dict[str, datetime]:
    first: dict[str, datetime] = {}
    for trade in all_trades:
        current = first.get(trade.bot_label)
        if current is None or trade.entry_time < current:
            first[trade.bot_label] = trade.entry_time
    return first


def bot_starting_equity(
    bot_label: str,
    all_trades: Iterable[Trade],
    window_start: datetime | None,
    settings: AnalyticsSettings,
    *,
    first_trade_times: Mapping[str, datetime] | None = None,
) -> float:
    """Equity a bot carries into the window starting at ``window_start``.

    Nominal capital plus the P&L of the bot's trades that exited between its
    first-ever trade and the window start.
    """
    trade_list = list(all_trades)
    first_times = first_trade_times if first_trade_times is not None else bot_first_trade_times(trade_list)
    nominal = settings.initial_capital_per_bot
    bot_start = first_times.get(bot_label)
    if window_start is None or bot_start is None or window_start <= bot_start:
        return nominal

    accumulated = sum(
        trade.profit_loss
        for trade in trade_list
        if trade.bot_label == bot_label and bot_start <= trade.exit_time < window_start
    )
    return nominal + accumulated


def linear_annualized_percent(total_pnl: float, time_in_days: float, starting_equity: float) -> float:
    if time_in_days <= 0:
        return 0.0
    return safe_divide(total_pnl / time_in_days * DAYS_PER_YEAR, starting_equity) * 100.0


def safe_divide(numerator: float, denominator: float) -> float:
    # Zero denominators pass through as non-finite values instead of raising.
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator
