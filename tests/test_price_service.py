from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from models import PriceHistoryPoint, ProductWithPrices, StorePrice
from price_service import (
    SortBy,
    cheapest,
    compute_price_stats,
    first_keyword,
    latest_per_store,
    period_days,
    related_products,
    sort_store_prices,
    summarize_history,
)

UPDATED = datetime(2024, 3, 1, tzinfo=timezone.utc)


def row(store_id, name, price, distance=None):
    return StorePrice(
        store_id=store_id,
        store_name=name,
        address="",
        price=price,
        distance_meters=distance,
        last_updated=UPDATED,
    )


@pytest.fixture
def rows():
    return [
        row("b", "beta Mart", 220, 300),
        row("a", "Alpha Foods", 180, None),
        row("c", "Corner Shop", 200, 100),
        row("d", "Delta", 240, None),
    ]


class TestSortStorePrices:
    def test_price_ascending(self, rows):
        assert [r.store_id for r in sort_store_prices(rows, SortBy.PRICE_ASC)] == ["a", "c", "b", "d"]

    def test_price_descending(self, rows):
        assert [r.store_id for r in sort_store_prices(rows, SortBy.PRICE_DESC)] == ["d", "b", "c", "a"]

    def test_distance_unknown_last_in_original_order(self, rows):
        assert [r.store_id for r in sort_store_prices(rows, SortBy.DISTANCE_ASC)] == ["c", "b", "a", "d"]

    def test_store_name_case_insensitive(self, rows):
        assert [r.store_id for r in sort_store_prices(rows, SortBy.STORE_NAME)] == ["a", "b", "c", "d"]

    def test_accepts_string_values(self, rows):
        assert sort_store_prices(rows, SortBy("price_desc"))[0].store_id == "d"


def test_cheapest(rows):
    assert cheapest(rows).store_id == "a"
    assert cheapest([]) is None


class TestPriceStats:
    def test_fold(self):
        stats = compute_price_stats([298, 318, 188])
        assert (stats.min_price, stats.max_price, stats.store_count) == (188, 318, 3)
        assert stats.avg_price == pytest.approx(268)

    def test_empty(self):
        stats = compute_price_stats([])
        assert stats.min_price is None and stats.avg_price is None and stats.store_count == 0


def test_latest_per_store_keeps_newest():
    deduped = latest_per_store([
        {"store_id": "a", "price": 100, "created_at": "2024-01-01T00:00:00Z"},
        {"store_id": "b", "price": 300, "created_at": "2024-01-01T00:00:00Z"},
        {"store_id": "a", "price": 120, "created_at": "2024-02-01T00:00:00Z"},
        {"store_id": "a", "price": 90, "created_at": "2023-12-01T00:00:00Z"},
    ])
    assert [(r["store_id"], r["price"]) for r in deduped] == [("a", 120), ("b", 300)]


def test_summarize_history():
    points = [
        PriceHistoryPoint(date="2024-03-01", min_price=180, avg_price=200, max_price=230, sample_count=3),
        PriceHistoryPoint(date="2024-03-02", min_price=170, avg_price=190, max_price=210, sample_count=2),
    ]
    summary = summarize_history(points)
    assert (summary.sample_count, summary.period_min, summary.period_max) == (5, 170, 230)

    empty = summarize_history([])
    assert empty.sample_count == 0 and empty.period_min is None


def test_period_days():
    assert [period_days(p) for p in ("7d", "1m", "3m")] == [7, 30, 90]
    with pytest.raises(ValueError):
        period_days("1y")


@pytest.mark.parametrize("name, expected", [
    ("Meiji Whole Milk 1L", "Meiji"),
    ("a Milk", "Milk"),
    ("明治　おいしい牛乳", "明治"),
    ("x", None),
    ("", None),
])
def test_first_keyword(name, expected):
    assert first_keyword(name) == expected


class TestRelatedProducts:
    def test_excludes_current_and_caps_at_four(self):
        db = MagicMock()
        db.search_products_with_prices.return_value = [
            ProductWithPrices(id=str(i), name=f"Milk {i}") for i in range(5)
        ]

        related = related_products(db, "2", "Milk 2")

        db.search_products_with_prices.assert_called_once_with("Milk", limit=5)
        assert [p.id for p in related] == ["0", "1", "3", "4"]

    def test_no_keyword_skips_search(self):
        db = MagicMock()
        assert related_products(db, "1", "a") == []
        db.search_products_with_prices.assert_not_called()
