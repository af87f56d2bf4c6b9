from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from sparkfinance import cli
from sparkfinance.cli import apply_cli_overrides, build_parser, parse_watchlist_item
from sparkfinance.config import Settings
from sparkfinance.domain.models import (
    AssetType,
    ChartDataPoint,
    FinancialAsset,
    RemainingRequests,
    WatchlistItem,
)
from sparkfinance.errors import ErrorKind


class FakeService:
    def __init__(self) -> None:
        self.closed = False

    def fetch_watchlist_data(self, items: list[WatchlistItem]) -> list[FinancialAsset]:
        return [
            FinancialAsset(items[0].ticker, items[0].type, 10.0, 1.0),
            FinancialAsset.zeroed(items[1], ErrorKind.RATE_LIMIT),
        ]

    def fetch_asset_daily_chart(self, item: WatchlistItem) -> list[ChartDataPoint]:
        return [ChartDataPoint(time=1_710_374_400_000, price=5.0)]

    def get_remaining_requests(self) -> RemainingRequests:
        return RemainingRequests(minute=4, day=20, total_day_across_keys=45, active_key_index=0)

    def get_api_key_count(self) -> int:
        return 2

    def get_key_usage(self) -> list[dict[str, object]]:
        return [{"index": 0, "key": "***ab12", "active": True, "minuteRequests": 1, "dayRequests": 5}]

    def close(self) -> None:
        self.closed = True


def _no_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sparkfinance.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ("ALPHA_VANTAGE_API_KEYS", "REQUESTS_PER_MINUTE", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(key, raising=False)


def test_watchlist_item_parsing() -> None:
    assert parse_watchlist_item("aapl") == WatchlistItem("AAPL", AssetType.STOCK)
    assert parse_watchlist_item("btc:crypto") == WatchlistItem("BTC", AssetType.CRYPTO)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_watchlist_item("btc:bond")
    with pytest.raises(argparse.ArgumentTypeError):
        parse_watchlist_item(":stock")


def test_cli_overrides_produce_expected_settings() -> None:
    args = build_parser().parse_args(
        ["--keys", "x,y", "--state-db", "state/test.db", "--log-level", "DEBUG", "quota"]
    )

    settings = apply_cli_overrides(Settings(), args)

    assert settings.alpha_vantage_api_keys == ("x", "y")
    assert settings.state_db_path == "state/test.db"
    assert settings.log_level == "DEBUG"


def test_cli_rejects_non_positive_period() -> None:
    args = build_parser().parse_args(["rsi", "IBM", "--period", "0"])

    with pytest.raises(ValueError):
        apply_cli_overrides(Settings(), args)


def test_subcommand_is_required() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_watchlist_command_prints_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _no_env(monkeypatch)
    service = FakeService()
    monkeypatch.setattr(cli, "build_service", lambda settings: service)
    monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: None)

    exit_code = cli.main(["watchlist", "BTC:crypto", "AAPL"])

    output = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert service.closed
    assert [row["ticker"] for row in output] == ["BTC", "AAPL"]
    assert output[0]["message"] is None
    assert output[1]["error"] == "RATE_LIMIT"
    assert "limit" in output[1]["message"]


def test_chart_command_writes_html(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _no_env(monkeypatch)
    written: dict[str, object] = {}

    def fake_report(ticker: str, points: list[ChartDataPoint], path: str) -> None:
        written.update(ticker=ticker, points=len(points), path=path)

    monkeypatch.setattr(cli, "build_service", lambda settings: FakeService())
    monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "write_chart_report", fake_report)
    html_path = str(tmp_path / "aapl.html")

    assert cli.main(["chart", "AAPL", "--html", html_path]) == 0
    assert json.loads(capsys.readouterr().out) == [{"time": 1_710_374_400_000, "price": 5.0}]
    assert written == {"ticker": "AAPL", "points": 1, "path": html_path}


def test_quota_command_includes_key_count(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _no_env(monkeypatch)
    monkeypatch.setattr(cli, "build_service", lambda settings: FakeService())
    monkeypatch.setattr(cli, "setup_logger", lambda *args, **kwargs: None)

    assert cli.main(["quota"]) == 0
    output = json.loads(capsys.readouterr().out)
    assert output["totalDayAcrossKeys"] == 45
    assert output["keyCount"] == 2
    assert output["keys"][0]["key"] == "***ab12"


def test_configuration_error_exits_with_code_two(monkeypatch: pytest.MonkeyPatch) -> None:
    _no_env(monkeypatch)
    monkeypatch.setenv("REQUESTS_PER_MINUTE", "-1")

    assert cli.main(["quota"]) == 2
