from __future__ import annotations

from pathlib import Path

from sparkfinance.domain.models import ChartDataPoint
from sparkfinance.logging.chart_report import chart_frame, write_chart_report


def test_chart_frame_sorts_and_converts_time() -> None:
    frame = chart_frame(
        [
            ChartDataPoint(time=1_710_374_400_000, price=70000.0),
            ChartDataPoint(time=1_710_288_000_000, price=68000.0),
        ]
    )

    assert list(frame["price"]) == [68000.0, 70000.0]
    assert str(frame["time"].iloc[0].date()) == "2024-03-13"


def test_write_chart_report_creates_html(tmp_path: Path) -> None:
    output = tmp_path / "reports" / "btc.html"

    write_chart_report("BTC", [ChartDataPoint(time=1_710_288_000_000, price=68000.0)], str(output))

    assert output.exists()
    assert "BTC daily close" in output.read_text(encoding="utf-8")


def test_write_chart_report_handles_empty_series(tmp_path: Path) -> None:
    output = tmp_path / "empty.html"

    write_chart_report("NOPE", [], str(output))

    assert "NOPE: no chart data" in output.read_text(encoding="utf-8")
