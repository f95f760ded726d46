from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from bot_analytics.models import SIDE_LONG, SIDE_SHORT, Trade


@dataclass(frozen=True)
class IngestResult:
    trades: list[Trade]
    skipped: int = 0


def load_trades(path: str | Path) -> IngestResult:
    source_path = Path(path)
    suffix = source_path.suffix.lower()
    if suffix == ".json":
        return _load_trades_json(source_path)
    if suffix in {".csv", ".tsv"}:
        return _load_trades_csv(source_path, delimiter="\t" if suffix == ".tsv" else ",")
    raise ValueError(f"Unsupported file type: {source_path.suffix}")


def load_trades_payload(payload: Any) -> IngestResult:
    records = _extract_records(payload)
    trades, skipped = _normalize_records(records)
    return IngestResult(trades=trades, skipped=skipped)


def _load_trades_json(path: Path) -> IngestResult:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return load_trades_payload(payload)


def _load_trades_csv(path: Path, delimiter: str) -> IngestResult:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle, delimiter=delimiter)
        trades, skipped = _normalize_records(reader)
    return IngestResult(trades=trades, skipped=skipped)


def _extract_records(payload: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "trades"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ValueError("Unsupported JSON format for trades payload")


def _normalize_records(records: Iterable[Mapping[str, Any]]) -> tuple[list[Trade], int]:
    trades: list[Trade] = []
    skipped = 0
    for raw in records:
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        try:
            trades.append(_normalize_trade(raw))
        except ValueError:
            skipped += 1
    return trades, skipped


def _normalize_trade(raw: Mapping[str, Any]) -> Trade:
    trade_id = _field(raw, "id", "trade_id")
    bot_label = _field(raw, "botLabel", "bot_label")
    if trade_id is None or bot_label is None:
        raise ValueError("Missing required trade fields")

    return Trade(
        trade_id=str(trade_id),
        bot_label=str(bot_label).strip(),
        side=_trade_side(_field(raw, "side")),
        entry_time=_naive_timestamp(_field(raw, "entryTime", "entry_time")),
        exit_time=_naive_timestamp(_field(raw, "exitTime", "exit_time")),
        entry_price=_number(_field(raw, "entryPrice", "entry_price")),
        exit_price=_number(_field(raw, "exitPrice", "exit_price")),
        quantity=_number(_field(raw, "quantity", "qty")),
        profit_loss=_number(_field(raw, "profitLoss", "profit_loss", "pnl")),
    )


def _field(raw: Mapping[str, Any], *aliases: str) -> Any:
    return next((raw[key] for key in aliases if raw.get(key) not in (None, "")), None)


def _trade_side(value: Any) -> str:
    text = str(value or "").strip().upper()
    if text in {SIDE_LONG, "BUY"}:
        return SIDE_LONG
    if text in {SIDE_SHORT, "SELL"}:
        return SIDE_SHORT
    raise ValueError(f"Unknown side: {value}")


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid numeric field: {value!r}") from exc


def _naive_timestamp(value: Any) -> datetime:
    """Parse an epoch number (seconds or milliseconds) or an ISO string.

    Offsets are dropped and the wall-clock time kept, so the day bucket
    matches the date portion of the string.
    """
    if value is None:
        raise ValueError("Missing timestamp")
    if not isinstance(value, (int, float)):
        text = str(value).strip()
        try:
            value = float(text)
        except ValueError:
            try:
                return datetime.fromisoformat(text).replace(tzinfo=None)
            except ValueError as exc:
                raise ValueError(f"Unsupported timestamp format: {text}") from exc

    seconds = value / 1000.0 if value > 1e12 else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Timestamp out of range: {value}") from exc
