from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

SIDE_LONG = "LONG"
SIDE_SHORT = "SHORT"


@dataclass(frozen=True)
class Trade:
    trade_id: str
    bot_label: str
    side: str
    entry_time: datetime
    exit_time: datetime
    entry_price: float
    exit_price: float
    quantity: float
    profit_loss: float

    @property
    def exit_day(self) -> str:
        return self.exit_time.date().isoformat()

    @property
    def duration_ms(self) -> float:
        return (self.exit_time - self.entry_time).total_seconds() * 1000.0
