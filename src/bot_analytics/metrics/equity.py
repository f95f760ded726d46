from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable

from bot_analytics.config.app_config import AnalyticsSettings
from bot_analytics.metrics.returns import daily_pnl_buckets
from bot_analytics.models import Trade

VIEW_DAILY = "daily"
VIEW_PER_TRADE = "per-trade"
VIEW_MODES = (VIEW_DAILY, VIEW_PER_TRADE)

MIN_TICKS = 4
MAX_TICKS = 8


@dataclass(frozen=True)
class EquityPoint:
    index: int
    timestamp: datetime
    cumulative_equity: float
    label: str
    daily_pnl: float | None = None


def parse_view_mode(value: str | None) -> str:
    cleaned = (value or "").strip().lower()
    if cleaned in {"", "daily", "day"}:
        return VIEW_DAILY
    if cleaned in {"per-trade", "per_trade", "pertrade", "trade"}:
        return VIEW_PER_TRADE
    raise ValueError(f"Unknown view mode: {value}")


def build_equity_curve(
    trades: Iterable[Trade],
    view_mode: str,
    *,
    settings: AnalyticsSettings | None = None,
) -> list[EquityPoint]:
    if view_mode not in VIEW_MODES:
        raise ValueError(f"Unknown view mode: {view_mode}")
    settings = settings or AnalyticsSettings()
    excluded = set(settings.excluded_weekdays)
    kept = [trade for trade in trades if trade.exit_time.weekday() not in excluded]
    ordered = sorted(kept, key=lambda trade: trade.exit_time)

    if view_mode == VIEW_DAILY:
        return _daily_points(ordered)
    return _per_trade_points(ordered)


def _daily_points(ordered: list[Trade]) -> list[EquityPoint]:
    buckets = daily_pnl_buckets(ordered)
    points: list[EquityPoint] = []
    cumulative = 0.0
    for day in sorted(buckets):
        daily_pnl = buckets[day]
        cumulative += daily_pnl
        points.append(
            EquityPoint(
                index=0,
                timestamp=datetime.combine(date.fromisoformat(day), time.min),
                cumulative_equity=cumulative,
                label=day,
                daily_pnl=daily_pnl,
            )
        )
    return points


def _per_trade_points(ordered: list[Trade]) -> list[EquityPoint]:
    points: list[EquityPoint] = []
    cumulative = 0.0
    for position, trade in enumerate(ordered, start=1):
        cumulative += trade.profit_loss
        points.append(
            EquityPoint(
                index=position,
                timestamp=trade.exit_time,
                cumulative_equity=cumulative,
                label=trade.trade_id,
            )
        )
    return points


def tick_stride(point_count: int, target_ticks: int = MAX_TICKS) -> int:
    target = min(max(target_ticks, MIN_TICKS), MAX_TICKS)
    return max(1, math.ceil(point_count / target))


def select_ticks(
    points: list[EquityPoint],
    view_mode: str,
    target_ticks: int = MAX_TICKS,
) -> list[datetime | int]:
    """Axis keys for every ``stride``-th point, starting at the first.

    Daily series are keyed by timestamp, per-trade series by trade index.
    """
    stride = tick_stride(len(points), target_ticks)
    selected = points[::stride]
    if view_mode == VIEW_PER_TRADE:
        return [point.index for point in selected]
    return [point.timestamp for point in selected]


def window_points(
    points: list[EquityPoint],
    start_index: int | None = None,
    end_index: int | None = None,
) -> list[EquityPoint]:
    last = len(points) - 1
    start = 0 if start_index is None else min(max(start_index, 0), last)
    end = last if end_index is None else min(max(end_index, 0), last)
    return points[start : end + 1]


def equity_points_to_dicts(points: Iterable[EquityPoint]) -> list[dict[str, Any]]:
    return [
        {
            "index": point.index,
            "timestamp": point.timestamp.isoformat(),
            "cumulative_equity": point.cumulative_equity,
            "label": point.label,
            "daily_pnl": point.daily_pnl,
        }
        for point in points
    ]
