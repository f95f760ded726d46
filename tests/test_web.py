from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from bot_analytics.web.app import app


@pytest.fixture
def client(trades_file) -> TestClient:
    return TestClient(app)


def test_bots_endpoint(client) -> None:
    response = client.get("/api/bots")

    assert response.status_code == 200
    assert response.json() == ["A", "B"]


def test_trades_endpoint_filters(client) -> None:
    response = client.get("/api/trades", params={"bot": "B"})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ["b1", "b2"]


def test_statistics_endpoint(client) -> None:
    response = client.get("/api/statistics")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_trades"] == 5
    assert payload["win_rate"] == pytest.approx(60.0)
    assert [bot["bot_label"] for bot in payload["per_bot_twrs"]] == ["A", "B"]


def test_statistics_endpoint_selected_bot_window(client) -> None:
    response = client.get("/api/statistics", params={"botLabel": "A", "startDate": "2024-01-03"})

    payload = response.json()
    assert payload["total_trades"] == 2
    assert payload["per_bot_twrs"] == []
    assert payload["starting_equity"] == pytest.approx(5100.0)


def test_equity_curve_endpoint(client) -> None:
    response = client.get("/api/equity-curve", params={"view": "daily"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["view_mode"] == "daily"
    labels = [point["label"] for point in payload["points"]]
    assert labels == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-08"]
    assert payload["points"][-1]["cumulative_equity"] == pytest.approx(35.0)
    assert payload["ticks"][0] == "2024-01-01T00:00:00"


def test_equity_curve_rejects_unknown_view(client) -> None:
    response = client.get("/api/equity-curve", params={"view": "weekly"})

    assert response.status_code == 400


def test_invalid_date_filter(client) -> None:
    response = client.get("/api/statistics", params={"start": "soon"})

    assert response.status_code == 400


def test_missing_trades_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("BOT_ANALYTICS_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.setenv("BOT_ANALYTICS_TRADES", str(tmp_path / "absent.json"))

    response = TestClient(app).get("/api/bots")

    assert response.status_code == 404


def test_non_finite_statistics_serialize_as_null(trades_file, tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "zero.toml"
    config_path.write_text("[analytics]\ninitial_capital_per_bot = 0\n", encoding="utf-8")
    monkeypatch.setenv("BOT_ANALYTICS_CONFIG", str(config_path))

    response = TestClient(app).get("/api/statistics")

    assert response.status_code == 200
    payload = response.json()
    assert payload["starting_equity"] == 0.0
    assert payload["twr_gain_percent"] is None
    assert payload["linear_annualized_percent"] is None
    assert payload["total_profit_loss"] == pytest.approx(65.0)
