from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sparkfinance.errors import StorageError
from sparkfinance.state.memory_store import InMemoryKeyValueStore
from sparkfinance.state.sqlite_store import SqliteKeyValueStore


def test_sqlite_store_persists_values_across_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "state.db"
    store = SqliteKeyValueStore(str(db_path))
    store.set_item("spark_finance_quote_AAPL", '{"data": 1}')
    store.set_item("spark_finance_quote_AAPL", '{"data": 2}')
    store.close()

    reopened = SqliteKeyValueStore(str(db_path))
    assert reopened.get_item("spark_finance_quote_AAPL") == '{"data": 2}'
    assert reopened.get_item("missing") is None
    reopened.remove_item("spark_finance_quote_AAPL")
    reopened.remove_item("missing")
    assert reopened.get_item("spark_finance_quote_AAPL") is None
    reopened.close()

    connection = sqlite3.connect(db_path)
    count = connection.execute("SELECT COUNT(*) FROM kv").fetchone()
    connection.close()
    assert count == (0,)


def test_sqlite_prefix_scan_treats_underscore_literally(tmp_path: Path) -> None:
    store = SqliteKeyValueStore(str(tmp_path / "state.db"))
    store.set_item("spark_finance_a", "1")
    store.set_item("spark_finance_b", "2")
    store.set_item("sparkXfinanceXc", "3")
    store.set_item("other", "4")

    assert store.keys("spark_finance_") == ["spark_finance_a", "spark_finance_b"]
    assert len(store.keys()) == 4
    store.close()


def test_sqlite_store_wraps_driver_errors(tmp_path: Path) -> None:
    store = SqliteKeyValueStore(str(tmp_path / "state.db"))
    store.close()

    with pytest.raises(StorageError):
        store.get_item("anything")


def test_memory_store_contract() -> None:
    store = InMemoryKeyValueStore({"a_1": "x"})
    store.set_item("a_2", "y")
    store.set_item("b_1", "z")
    store.remove_item("a_1")

    assert store.get_item("a_1") is None
    assert store.keys("a_") == ["a_2"]
    assert sorted(store.keys()) == ["a_2", "b_1"]
