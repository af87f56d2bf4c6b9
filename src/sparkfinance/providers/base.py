"""Shared payload parsing for provider adapters."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import pandas as pd

T = TypeVar("T")


def as_float(value: Any, default: float = 0.0) -> float:
    """Parse provider numerics such as ``"1.23"`` or ``"-0.5%"``; bad input gives `default`."""
    if value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().rstrip("%")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    if number != number:  # NaN
        return default
    return number


def as_int(value: Any, default: int = 0) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def time_series_frame(
    series: Mapping[str, Mapping[str, Any]],
    limit: int | None = None,
) -> pd.DataFrame:
    """Normalize a date-keyed provider series into an ascending numeric frame.

    The provider returns newest-first dictionaries keyed by date strings.
    The result keeps the original key in a ``date`` column, is indexed by
    UTC timestamps, and holds only the newest `limit` rows when given.
    """
    if not series:
        return pd.DataFrame()
    frame = pd.DataFrame.from_dict(dict(series), orient="index")
    value_columns = list(frame.columns)
    frame[value_columns] = frame[value_columns].apply(pd.to_numeric, errors="coerce")
    frame["date"] = frame.index.astype(str)
    frame.index = pd.to_datetime(frame.index, utc=True, errors="coerce")
    frame = frame[frame.index.notna()].sort_index()
    if limit is not None:
        frame = frame.tail(limit)
    return frame


def decode_list(decode: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    """Lift a record decoder to a cached list of records."""

    def decode_all(records: Any) -> list[T]:
        if not isinstance(records, list):
            raise TypeError(f"expected a list of records, got {type(records).__name__}")
        return [decode(record) for record in records]

    return decode_all
