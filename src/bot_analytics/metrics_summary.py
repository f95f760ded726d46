from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from bot_analytics.config.app_config import load_app_config
from bot_analytics.filters import filter_trades, parse_date_bound
from bot_analytics.ingest.trades import load_trades
from bot_analytics.metrics.equity import (
    VIEW_DAILY,
    VIEW_PER_TRADE,
    build_equity_curve,
    equity_points_to_dicts,
    select_ticks,
)
from bot_analytics.metrics.summary import StatisticsReport, compute_statistics, statistics_to_dict


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Compute bot performance statistics and equity curve.")
    parser.add_argument(
        "trades_path",
        type=Path,
        nargs="?",
        default=None,
        help="Path to a closed trades export (json/csv/tsv). Defaults to the configured path.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to app.toml.")
    parser.add_argument("--bot", type=str, default=None, help="Restrict to a single bot label.")
    parser.add_argument("--start", type=str, default=None, help="Window start (YYYY-MM-DD or ISO timestamp).")
    parser.add_argument("--end", type=str, default=None, help="Window end (YYYY-MM-DD or ISO timestamp).")
    parser.add_argument(
        "--view",
        choices=(VIEW_DAILY, VIEW_PER_TRADE),
        default=VIEW_DAILY,
        help="Equity curve granularity.",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON output.")
    parser.add_argument("--out", type=Path, default=None, help="Write output to a file instead of stdout.")
    args = parser.parse_args(argv)

    app_config = load_app_config(args.config)
    settings = app_config.analytics
    trades_path = args.trades_path or app_config.paths.trades
    if not trades_path.exists():
        print(f"Trades file not found: {trades_path}", file=sys.stderr)
        return 1

    try:
        start = parse_date_bound(args.start)
        end = parse_date_bound(args.end, end=True)
    except ValueError as exc:
        parser.error(str(exc))

    result = load_trades(trades_path)
    if result.skipped:
        print(f"Skipped {result.skipped} trade rows during normalization.", file=sys.stderr)

    trades = filter_trades(result.trades, bot_label=args.bot, start=start, end=end)
    report = compute_statistics(
        trades,
        result.trades,
        args.bot,
        settings=settings,
        window_start=start,
    )
    points = build_equity_curve(trades, args.view, settings=settings)
    ticks = select_ticks(points, args.view, settings.target_ticks)

    if args.json or (args.out is not None and args.out.suffix.lower() == ".json"):
        payload: dict[str, Any] = {
            "statistics": statistics_to_dict(report),
            "equity_curve": {
                "view_mode": args.view,
                "points": equity_points_to_dicts(points),
                "ticks": [tick if isinstance(tick, int) else tick.isoformat() for tick in ticks],
            },
        }
        text = json.dumps(payload, indent=2, sort_keys=True)
    else:
        text = format_statistics(report)

    if args.out is None:
        print(text)
    else:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(text + "\n", encoding="utf-8")

    return 0


def format_statistics(report: StatisticsReport) -> str:
    lines = [
        f"total_trades {report.total_trades}",
        f"win_rate {_format_percent(report.win_rate)}",
        f"profit_factor {report.profit_factor:.2f}",
        f"sortino_ratio {report.sortino_ratio:.3f}",
        f"total_profit_loss {_format_money(report.total_profit_loss)}",
        f"avg_winning_trade {_format_money(report.avg_winning_trade)}",
        f"avg_losing_trade {_format_money(report.avg_losing_trade)}",
        f"twr_gain {_format_percent(report.twr_gain_percent)}",
        f"annualized_gain {_format_percent(report.linear_annualized_percent)}",
        f"max_consecutive_wins {report.max_consecutive_wins}",
        f"max_consecutive_losses {report.max_consecutive_losses}",
        f"largest_win {_format_money(report.largest_winning_trade)}",
        f"largest_loss {_format_money(report.largest_losing_trade)}",
        f"avg_duration {format_duration(report.avg_trade_duration_ms)}",
    ]
    for bot in report.per_bot_twrs:
        lines.append(
            f"bot {bot.bot_label} twr {_format_percent(bot.gain_percent)} "
            f"annualized {_format_percent(bot.annualized_percent)} sortino {bot.sortino_ratio:.3f}"
        )
    return "\n".join(lines)


def format_duration(duration_ms: float) -> str:
    if duration_ms < 1000:
        return f"{round(duration_ms)}ms"
    total_seconds = round(duration_ms / 1000)
    if total_seconds < 60:
        return f"{total_seconds}s"
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}m {seconds}s"


def _format_money(value: float) -> str:
    return f"${value:.2f}"


def _format_percent(value: float) -> str:
    return f"{value:.2f}%"


if __name__ == "__main__":
    raise SystemExit(main())
