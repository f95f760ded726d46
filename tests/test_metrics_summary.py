from __future__ import annotations

import json

import pytest

from bot_analytics.metrics_summary import format_duration, main


def test_json_output_contains_statistics_and_curve(trades_file, tmp_path) -> None:
    out_path = tmp_path / "out" / "metrics.json"

    exit_code = main([str(trades_file), "--out", str(out_path), "--view", "per-trade"])

    assert exit_code == 0
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    stats = payload["statistics"]
    assert stats["total_trades"] == 5
    assert stats["total_profit_loss"] == pytest.approx(65.0)
    assert [bot["bot_label"] for bot in stats["per_bot_twrs"]] == ["A", "B"]
    curve = payload["equity_curve"]
    assert curve["view_mode"] == "per-trade"
    assert [point["label"] for point in curve["points"]] == ["a1", "b1", "a2", "a3"]
    assert curve["ticks"] == [1, 2, 3, 4]


def test_bot_and_date_filters(trades_file, capsys) -> None:
    exit_code = main([str(trades_file), "--bot", "A", "--start", "2024-01-03", "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    stats = payload["statistics"]
    assert stats["total_trades"] == 2
    assert stats["per_bot_twrs"] == []
    assert stats["starting_equity"] == pytest.approx(5100.0)
    assert [point["label"] for point in payload["equity_curve"]["points"]] == ["2024-01-03", "2024-01-08"]


def test_text_output(trades_file, capsys) -> None:
    exit_code = main([str(trades_file)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "total_trades 5" in out
    assert "win_rate 60.00%" in out
    assert "total_profit_loss $65.00" in out
    assert "avg_duration 60m 0s" in out
    assert "bot A twr" in out


def test_missing_trades_file(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("BOT_ANALYTICS_CONFIG", str(tmp_path / "missing.toml"))

    exit_code = main([str(tmp_path / "nope.json")])

    assert exit_code == 1
    assert "Trades file not found" in capsys.readouterr().err


def test_skipped_rows_reported(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("BOT_ANALYTICS_CONFIG", str(tmp_path / "missing.toml"))
    path = tmp_path / "trades.json"
    path.write_text(json.dumps([{"id": "x"}]), encoding="utf-8")

    exit_code = main([str(path)])

    assert exit_code == 0
    captured = capsys.readouterr()
    assert "Skipped 1 trade rows" in captured.err
    assert "total_trades 0" in captured.out


@pytest.mark.parametrize(
    ("duration_ms", "expected"),
    [
        (450.0, "450ms"),
        (12_400.0, "12s"),
        (59_600.0, "1m 0s"),
        (90_500.0, "1m 30s"),
        (119_600.0, "2m 0s"),
        (3_600_000.0, "60m 0s"),
    ],
)
def test_format_duration(duration_ms, expected) -> None:
    assert format_duration(duration_ms) == expected
