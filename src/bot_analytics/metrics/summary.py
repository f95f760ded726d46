from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterable

from bot_analytics.config.app_config import AnalyticsSettings
from bot_analytics.metrics.returns import (
    bot_first_trade_times,
    bot_starting_equity,
    compute_time_span,
    compute_twr_and_sortino,
    daily_pnl_buckets,
    linear_annualized_percent,
)
from bot_analytics.models import Trade


@dataclass(frozen=True)
class BotPerformance:
    bot_label: str
    gain_percent: float
    annualized_percent: float
    sortino_ratio: float
    starting_equity: float


@dataclass(frozen=True)
class TradeAggregates:
    total_trades: int
    winning_trades: int
    losing_trades: int
    gross_profit: float
    gross_loss: float
    total_profit_loss: float
    max_consecutive_wins: int
    max_consecutive_losses: int
    current_win_streak: int
    current_loss_streak: int
    avg_winning_trade: float
    avg_losing_trade: float
    largest_winning_trade: float
    largest_losing_trade: float
    avg_trade_duration_ms: float

    @property
    def win_rate(self) -> float:
        if not self.total_trades:
            return 0.0
        return self.winning_trades / self.total_trades * 100.0

    @property
    def profit_factor(self) -> float:
        if self.gross_loss == 0:
            return self.gross_profit
        return self.gross_profit / self.gross_loss


@dataclass(frozen=True)
class StatisticsReport:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    total_profit_loss: float = 0.0
    avg_winning_trade: float = 0.0
    avg_losing_trade: float = 0.0
    largest_winning_trade: float = 0.0
    largest_losing_trade: float = 0.0
    avg_trade_duration_ms: float = 0.0
    sortino_ratio: float = 0.0
    twr_gain_percent: float = 0.0
    linear_annualized_percent: float = 0.0
    time_in_years: float = 0.0
    time_in_days: float = 0.0
    starting_equity: float = 0.0
    per_bot_twrs: list[BotPerformance] = field(default_factory=list)


def empty_statistics() -> StatisticsReport:
    return StatisticsReport()


def compute_statistics(
    trades: Iterable[Trade],
    all_trades: Iterable[Trade],
    selected_bot: str | None = None,
    *,
    settings: AnalyticsSettings | None = None,
    window_start: datetime | None = None,
) -> StatisticsReport:
    """Build the statistics report for an already filtered trade set.

    ``all_trades`` is the unfiltered universe, used to rebuild each bot's
    equity at ``window_start``. Without an explicit window start, the earliest
    entry in ``trades`` is used. The per-bot breakdown is only produced when
    no single bot is selected.
    """
    trade_list = list(trades)
    if not trade_list:
        return empty_statistics()

    settings = settings or AnalyticsSettings()
    universe = list(all_trades)
    first_times = bot_first_trade_times(universe)
    if window_start is None:
        window_start = min(trade.entry_time for trade in trade_list)

    aggregates = compute_trade_aggregates(trade_list)
    span = compute_time_span(trade_list)

    by_bot: dict[str, list[Trade]] = {}
    for trade in trade_list:
        by_bot.setdefault(trade.bot_label, []).append(trade)

    starting_equities = {
        bot: bot_starting_equity(bot, universe, window_start, settings, first_trade_times=first_times)
        for bot in by_bot
    }

    per_bot: list[BotPerformance] = []
    if not selected_bot:
        for bot, bot_trades in by_bot.items():
            starting_equity = starting_equities[bot]
            returns = compute_twr_and_sortino(daily_pnl_buckets(bot_trades), starting_equity, settings)
            bot_pnl = sum(trade.profit_loss for trade in bot_trades)
            per_bot.append(
                BotPerformance(
                    bot_label=bot,
                    gain_percent=returns.twr * 100.0,
                    annualized_percent=linear_annualized_percent(bot_pnl, span.days, starting_equity),
                    sortino_ratio=returns.sortino,
                    starting_equity=starting_equity,
                )
            )

    pooled_equity = sum(starting_equities.values())
    pooled = compute_twr_and_sortino(daily_pnl_buckets(trade_list), pooled_equity, settings)

    return StatisticsReport(
        total_trades=aggregates.total_trades,
        winning_trades=aggregates.winning_trades,
        losing_trades=aggregates.losing_trades,
        win_rate=aggregates.win_rate,
        profit_factor=aggregates.profit_factor,
        gross_profit=aggregates.gross_profit,
        gross_loss=aggregates.gross_loss,
        max_consecutive_wins=aggregates.max_consecutive_wins,
        max_consecutive_losses=aggregates.max_consecutive_losses,
        total_profit_loss=aggregates.total_profit_loss,
        avg_winning_trade=aggregates.avg_winning_trade,
        avg_losing_trade=aggregates.avg_losing_trade,
        largest_winning_trade=aggregates.largest_winning_trade,
        largest_losing_trade=aggregates.largest_losing_trade,
        avg_trade_duration_ms=aggregates.avg_trade_duration_ms,
        sortino_ratio=pooled.sortino,
        twr_gain_percent=pooled.twr * 100.0,
        linear_annualized_percent=linear_annualized_percent(
            aggregates.total_profit_loss, span.days, pooled_equity
        ),
        time_in_years=span.years,
        time_in_days=span.days,
        starting_equity=pooled_equity,
        per_bot_twrs=per_bot,
    )


def compute_trade_aggregates(trades: Iterable[Trade]) -> TradeAggregates:
    """Single pass over ``trades`` in the order given.

    Anything not strictly positive is a loss for win rate and streaks, but
    breakeven trades stay out of both the win and the loss averages.
    """
    total = 0
    wins = 0
    losses = 0
    gross_profit = 0.0
    gross_loss = 0.0
    total_pnl = 0.0
    total_duration = 0.0
    loss_amounts = 0.0
    loss_count = 0
    largest_win = 0.0
    largest_loss = 0.0
    current_wins = 0
    current_losses = 0
    max_wins = 0
    max_losses = 0

    for trade in trades:
        pnl = trade.profit_loss
        total += 1
        total_pnl += pnl
        total_duration += trade.duration_ms

        if pnl > 0:
            wins += 1
            gross_profit += pnl
            largest_win = max(largest_win, pnl)
            current_wins += 1
            current_losses = 0
            max_wins = max(max_wins, current_wins)
        else:
            losses += 1
            if pnl < 0:
                gross_loss += abs(pnl)
                loss_amounts += pnl
                loss_count += 1
            largest_loss = min(largest_loss, pnl)
            current_losses += 1
            current_wins = 0
            max_losses = max(max_losses, current_losses)

    return TradeAggregates(
        total_trades=total,
        winning_trades=wins,
        losing_trades=losses,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        total_profit_loss=total_pnl,
        max_consecutive_wins=max_wins,
        max_consecutive_losses=max_losses,
        current_win_streak=current_wins,
        current_loss_streak=current_losses,
        avg_winning_trade=gross_profit / wins if wins else 0.0,
        avg_losing_trade=loss_amounts / loss_count if loss_count else 0.0,
        largest_winning_trade=largest_win,
        largest_losing_trade=largest_loss,
        avg_trade_duration_ms=total_duration / total if total else 0.0,
    )


def statistics_to_dict(report: StatisticsReport) -> dict[str, Any]:
    return asdict(report)
