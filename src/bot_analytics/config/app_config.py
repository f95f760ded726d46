from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

CONFIG_ENV = "BOT_ANALYTICS_CONFIG"
TRADES_ENV = "BOT_ANALYTICS_TRADES"


@dataclass(frozen=True)
class AppSettings:
    host: str
    port: int
    reload: bool


@dataclass(frozen=True)
class PathsSettings:
    trades: Path


@dataclass(frozen=True)
class AnalyticsSettings:
    initial_capital_per_bot: float = 5000.0
    risk_free_rate: float = 0.0438
    trading_days: int = 252
    excluded_weekdays: tuple[int, ...] = (5,)
    target_ticks: int = 8


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    paths: PathsSettings
    analytics: AnalyticsSettings


def load_app_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    environ = os.environ if env is None else env
    config_path = path or Path(environ.get(CONFIG_ENV) or "config/app.toml")
    raw: Mapping[str, Any] = {}
    if config_path.exists():
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))

    app_raw = _section(raw, "app")
    paths_raw = _section(raw, "paths")
    analytics_raw = _section(raw, "analytics")

    app = AppSettings(
        host=str(app_raw.get("host", "127.0.0.1")),
        port=int(app_raw.get("port", 8000)),
        reload=bool(app_raw.get("reload", True)),
    )

    trades_path = environ.get(TRADES_ENV) or paths_raw.get("trades") or "data/trades.json"
    paths = PathsSettings(trades=Path(str(trades_path)))

    defaults = AnalyticsSettings()
    excluded = _int_list(analytics_raw.get("excluded_weekdays"))
    analytics = AnalyticsSettings(
        initial_capital_per_bot=_float_or_default(
            analytics_raw.get("initial_capital_per_bot"), defaults.initial_capital_per_bot
        ),
        risk_free_rate=_float_or_default(analytics_raw.get("risk_free_rate"), defaults.risk_free_rate),
        trading_days=_positive_int_or_default(analytics_raw.get("trading_days"), defaults.trading_days),
        excluded_weekdays=(
            tuple(day for day in excluded if 0 <= day <= 6)
            if "excluded_weekdays" in analytics_raw
            else defaults.excluded_weekdays
        ),
        target_ticks=_positive_int_or_default(analytics_raw.get("target_ticks"), defaults.target_ticks),
    )

    return AppConfig(app=app, paths=paths, analytics=analytics)


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _float_or_default(value: Any, default: float) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _positive_int_or_default(value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    output: list[int] = []
    for item in value:
        try:
            output.append(int(item))
        except (TypeError, ValueError):
            continue
    return output
