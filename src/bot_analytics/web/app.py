from __future__ import annotations

import math
import os
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request

from bot_analytics.config.app_config import AppConfig, load_app_config
from bot_analytics.filters import bot_labels, filter_trades, parse_date_bound
from bot_analytics.ingest.trades import load_trades
from bot_analytics.metrics.equity import (
    build_equity_curve,
    equity_points_to_dicts,
    parse_view_mode,
    select_ticks,
)
from bot_analytics.metrics.summary import compute_statistics, statistics_to_dict
from bot_analytics.models import Trade

app = FastAPI(title="Bot Analytics")


@app.get("/api/bots")
def bots_api() -> list[str]:
    trades = _load_all_trades(_app_config())
    return bot_labels(trades)


@app.get("/api/trades")
def trades_api(request: Request) -> list[dict[str, Any]]:
    trades = _load_all_trades(_app_config())
    filters = _parse_filters(request)
    filtered = filter_trades(trades, **filters)
    return [_trade_to_dict(trade) for trade in filtered]


@app.get("/api/statistics")
def statistics_api(request: Request) -> dict[str, Any]:
    config = _app_config()
    trades = _load_all_trades(config)
    filters = _parse_filters(request)
    filtered = filter_trades(trades, **filters)
    report = compute_statistics(
        filtered,
        trades,
        filters["bot_label"],
        settings=config.analytics,
        window_start=filters["start"],
    )
    return _json_safe(statistics_to_dict(report))


@app.get("/api/equity-curve")
def equity_curve_api(request: Request) -> dict[str, Any]:
    config = _app_config()
    trades = _load_all_trades(config)
    filters = _parse_filters(request)
    try:
        view_mode = parse_view_mode(request.query_params.get("view"))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    target_ticks = _int_param(request, "ticks", config.analytics.target_ticks)

    filtered = filter_trades(trades, **filters)
    points = build_equity_curve(filtered, view_mode, settings=config.analytics)
    ticks = select_ticks(points, view_mode, target_ticks)
    return {
        "view_mode": view_mode,
        "points": _json_safe(equity_points_to_dicts(points)),
        "ticks": [tick.isoformat() if isinstance(tick, datetime) else tick for tick in ticks],
    }


def _app_config() -> AppConfig:
    return load_app_config(env=os.environ)


def _load_all_trades(config: AppConfig) -> list[Trade]:
    path = config.paths.trades
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"Trades file not found: {path}")
    try:
        result = load_trades(path)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.trades


def _parse_filters(request: Request) -> dict[str, Any]:
    params = request.query_params
    bot_label = (params.get("bot") or params.get("botLabel") or "").strip() or None
    try:
        start = parse_date_bound(params.get("start") or params.get("startDate"))
        end = parse_date_bound(params.get("end") or params.get("endDate"), end=True)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date filter: {exc}") from exc
    return {"bot_label": bot_label, "start": start, "end": end}


def _int_param(request: Request, key: str, default: int) -> int:
    raw = request.query_params.get(key)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {key}: {raw}") from exc


def _trade_to_dict(trade: Trade) -> dict[str, Any]:
    return {
        "id": trade.trade_id,
        "bot_label": trade.bot_label,
        "side": trade.side,
        "entry_time": trade.entry_time.isoformat(),
        "exit_time": trade.exit_time.isoformat(),
        "entry_price": trade.entry_price,
        "exit_price": trade.exit_price,
        "quantity": trade.quantity,
        "profit_loss": trade.profit_loss,
    }


def _json_safe(value: Any) -> Any:
    # JSON has no encoding for inf/nan.
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


def main() -> None:
    import uvicorn

    app_config = load_app_config()
    uvicorn.run(
        "bot_analytics.web.app:app",
        host=app_config.app.host,
        port=app_config.app.port,
        reload=app_config.app.reload,
    )


if __name__ == "__main__":
    main()
