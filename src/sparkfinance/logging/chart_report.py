"""Plotly report generator for daily chart series."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import plotly.express as px

from sparkfinance.domain.models import ChartDataPoint


def chart_frame(points: list[ChartDataPoint]) -> pd.DataFrame:
    """Convert chart points into a time-indexed price frame."""
    if not points:
        return pd.DataFrame({"time": pd.to_datetime([], utc=True), "price": []})
    frame = pd.DataFrame([point.to_record() for point in points])
    frame["time"] = pd.to_datetime(frame["time"], unit="ms", utc=True)
    return frame.sort_values("time").reset_index(drop=True)


def write_chart_report(ticker: str, points: list[ChartDataPoint], output_html_path: str) -> None:
    """Render an interactive daily close chart for a ticker."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    frame = chart_frame(points)
    if frame.empty:
        empty_df = pd.DataFrame({"ticker": [ticker], "points": [0]})
        figure = px.bar(empty_df, x="ticker", y="points", title=f"{ticker}: no chart data")
        figure.write_html(str(output), include_plotlyjs="cdn")
        return

    figure = px.line(frame, x="time", y="price", title=f"{ticker} daily close")
    figure.update_traces(mode="lines+markers")
    figure.update_layout(xaxis_title="date", yaxis_title="price")
    figure.write_html(str(output), include_plotlyjs="cdn")
