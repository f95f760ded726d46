from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable

from bot_analytics.models import Trade


def filter_trades(
    trades: Iterable[Trade],
    *,
    bot_label: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Trade]:
    filtered: list[Trade] = []
    for trade in trades:
        if bot_label and trade.bot_label != bot_label:
            continue
        if start is not None and trade.exit_time < start:
            continue
        if end is not None and trade.exit_time > end:
            continue
        filtered.append(trade)
    return filtered


def bot_labels(trades: Iterable[Trade]) -> list[str]:
    labels: dict[str, None] = {}
    for trade in trades:
        labels.setdefault(trade.bot_label, None)
    return list(labels)


def parse_date_bound(value: str | None, *, end: bool = False) -> datetime | None:
    """Parse a ``YYYY-MM-DD`` or ISO timestamp filter bound.

    A date-only upper bound covers the whole day. Offsets are dropped, keeping
    the wall-clock time, since trade timestamps are naive.
    """
    if not value:
        return None
    text = value.strip()
    if len(text) == 10:
        day = date.fromisoformat(text)
        return datetime.combine(day, time.max if end else time.min)
    return datetime.fromisoformat(text).replace(tzinfo=None)
