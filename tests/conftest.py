from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from bot_analytics.models import Trade


def make_trade(
    trade_id: str,
    exit_day: str,
    profit_loss: float,
    *,
    bot_label: str = "A",
    side: str = "LONG",
    hold_minutes: int = 60,
    exit_clock: str = "10:00:00",
) -> Trade:
    exit_time = datetime.fromisoformat(f"{exit_day}T{exit_clock}")
    return Trade(
        trade_id=trade_id,
        bot_label=bot_label,
        side=side,
        entry_time=exit_time - timedelta(minutes=hold_minutes),
        exit_time=exit_time,
        entry_price=4800.0,
        exit_price=4800.0 + profit_loss / 5.0,
        quantity=1.0,
        profit_loss=profit_loss,
    )


def trade_record(trade: Trade) -> dict[str, Any]:
    return {
        "id": trade.trade_id,
        "botLabel": trade.bot_label,
        "entryTime": trade.entry_time.isoformat(),
        "exitTime": trade.exit_time.isoformat(),
        "entryPrice": trade.entry_price,
        "exitPrice": trade.exit_price,
        "quantity": trade.quantity,
        "profitLoss": trade.profit_loss,
        "side": trade.side,
    }


@pytest.fixture
def scenario_trades() -> list[Trade]:
    return [
        make_trade("t1", "2024-01-01", 100.0),
        make_trade("t2", "2024-01-02", -40.0),
        make_trade("t3", "2024-01-03", 25.0),
    ]


@pytest.fixture
def trades_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    trades = [
        make_trade("a1", "2024-01-01", 100.0, bot_label="A"),
        make_trade("b1", "2024-01-02", -50.0, bot_label="B"),
        make_trade("a2", "2024-01-03", -40.0, bot_label="A"),
        make_trade("b2", "2024-01-06", 30.0, bot_label="B"),
        make_trade("a3", "2024-01-08", 25.0, bot_label="A"),
    ]
    path = tmp_path / "trades.json"
    path.write_text(json.dumps([trade_record(trade) for trade in trades]), encoding="utf-8")
    monkeypatch.setenv("BOT_ANALYTICS_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.setenv("BOT_ANALYTICS_TRADES", str(path))
    return path
