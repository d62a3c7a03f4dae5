"""
tests/test_asset_history.py
Test cases for the per-day asset history upsert
"""

from datetime import datetime

import pytest

from portfolio_tracker.core.db import unit_of_work


@pytest.fixture
def asset(make_asset):
    return make_asset("AAPL")


@pytest.fixture
def history_repo(factory):
    return factory.get_asset_history_repository()


def ohlcv(close, volume=500):
    return {"open": close - 1, "high": close + 1, "low": close - 2, "close": close, "volume": volume}


def test_repeated_upserts_same_day_keep_one_row(history_repo, asset):
    for i, hour in enumerate([9, 12, 16, 23]):
        history_repo.upsert_for_day(asset.id, ohlcv(100 + i), datetime(2025, 3, 14, hour, 30))

    rows = history_repo.get_history(asset.id)
    assert len(rows) == 1
    assert float(rows[0].close) == pytest.approx(103)


def test_first_upsert_stamps_row_with_given_time(history_repo, asset):
    at = datetime(2025, 3, 14, 9, 45)

    record, is_new = history_repo.upsert_for_day(asset.id, ohlcv(100), at)

    assert is_new is True
    assert record.date == at


def test_new_day_creates_new_row(history_repo, asset):
    history_repo.upsert_for_day(asset.id, ohlcv(100), datetime(2025, 3, 14, 23, 59))
    _, is_new = history_repo.upsert_for_day(asset.id, ohlcv(101), datetime(2025, 3, 15, 0, 0))

    assert is_new is True
    assert history_repo.count_history(asset.id) == 2
    assert float(history_repo.get_latest(asset.id).close) == pytest.approx(101)


def test_missing_volume_is_stored_as_null(history_repo, asset):
    record, _ = history_repo.upsert_for_day(asset.id, ohlcv(100, volume=None), datetime(2025, 3, 14, 10))

    assert record.volume is None


def test_upsert_joins_enclosing_unit_of_work(db, history_repo, asset):
    with pytest.raises(RuntimeError):
        with unit_of_work(db):
            history_repo.upsert_for_day(asset.id, ohlcv(100), datetime(2025, 3, 14, 10))
            raise RuntimeError("boom")

    assert history_repo.count_history(asset.id) == 0


def test_history_range_and_order(history_repo, asset):
    for day in (10, 11, 12, 13):
        history_repo.upsert_for_day(asset.id, ohlcv(100 + day), datetime(2025, 3, day, 16))

    rows = history_repo.get_history(
        asset.id, date_from=datetime(2025, 3, 11), date_to=datetime(2025, 3, 12, 23, 59)
    )

    assert [r.date.day for r in rows] == [12, 11]
