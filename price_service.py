"""
Price analysis for the product pages

Everything here runs on rows already fetched from the backend:
- Store comparison sorting (price, distance, store name)
- Min / max / average folds over current prices
- Latest-price-per-store deduplication
- Price history summaries for a selected period
- Related product lookup by first keyword
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from models import PriceHistoryPoint, ProductWithPrices, StorePrice

if TYPE_CHECKING:
    from database import DatabaseService

logger = logging.getLogger(__name__)

# Selectable history periods
PERIOD_DAYS = {
    "7d": 7,
    "1m": 30,
    "3m": 90,
}
DEFAULT_PERIOD = "1m"

MAX_RELATED_PRODUCTS = 4
RELATED_SEARCH_LIMIT = 5

# ASCII and ideographic (full-width) whitespace
_KEYWORD_SPLIT = re.compile(r"[\s　]+")


class SortBy(str, Enum):
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DISTANCE_ASC = "distance_asc"
    STORE_NAME = "store_name"


@dataclass
class PriceStats:
    """Current price spread of a product across stores"""
    min_price: Optional[float]
    max_price: Optional[float]
    avg_price: Optional[float]
    store_count: int

    @classmethod
    def empty(cls) -> "PriceStats":
        return cls(min_price=None, max_price=None, avg_price=None, store_count=0)


@dataclass
class HistorySummary:
    """Totals shown under the price history chart"""
    sample_count: int
    period_min: Optional[float]
    period_max: Optional[float]


def sort_store_prices(rows: Iterable[StorePrice], sort_by: SortBy = SortBy.PRICE_ASC) -> List[StorePrice]:
    """
    Order comparison rows.

    Distance sort puts rows with unknown distance after the known ones,
    keeping their original order.
    """
    rows = list(rows)

    if sort_by == SortBy.PRICE_ASC:
        return sorted(rows, key=lambda r: r.price)
    if sort_by == SortBy.PRICE_DESC:
        return sorted(rows, key=lambda r: r.price, reverse=True)
    if sort_by == SortBy.DISTANCE_ASC:
        return sorted(
            rows,
            key=lambda r: (r.distance_meters is None, r.distance_meters or 0.0),
        )
    if sort_by == SortBy.STORE_NAME:
        return sorted(rows, key=lambda r: r.store_name.casefold())
    return rows


def cheapest(rows: Iterable[StorePrice]) -> Optional[StorePrice]:
    rows = list(rows)
    if not rows:
        return None
    return min(rows, key=lambda r: r.price)


def compute_price_stats(prices: Iterable[float]) -> PriceStats:
    values = [float(p) for p in prices]
    if not values:
        return PriceStats.empty()

    return PriceStats(
        min_price=min(values),
        max_price=max(values),
        avg_price=sum(values) / len(values),
        store_count=len(values),
    )


def latest_per_store(rows: Iterable[Dict]) -> List[Dict]:
    """
    Keep only the most recent price row for each store.

    Rows without created_at count as oldest. First-seen order is preserved.
    """
    latest: Dict[str, Dict] = {}
    for row in rows:
        store_id = row.get("store_id")
        current = latest.get(store_id)
        if current is None or (row.get("created_at") or "") > (current.get("created_at") or ""):
            latest[store_id] = row
    return list(latest.values())


def summarize_history(points: Iterable[PriceHistoryPoint]) -> HistorySummary:
    points = list(points)
    if not points:
        return HistorySummary(sample_count=0, period_min=None, period_max=None)

    return HistorySummary(
        sample_count=sum(p.sample_count for p in points),
        period_min=min(p.min_price for p in points),
        period_max=max(p.max_price for p in points),
    )


def period_days(period: str) -> int:
    """Map a period key (7d / 1m / 3m) to days"""
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown period '{period}', expected one of {list(PERIOD_DAYS)}")
    return PERIOD_DAYS[period]


def first_keyword(product_name: str) -> Optional[str]:
    keywords = [k for k in _KEYWORD_SPLIT.split(product_name) if len(k) > 1]
    return keywords[0] if keywords else None


def related_products(
    db: "DatabaseService",
    current_product_id: str,
    product_name: str,
) -> List[ProductWithPrices]:
    """Other products sharing the first keyword of this product's name"""
    keyword = first_keyword(product_name)
    if keyword is None:
        return []

    products = db.search_products_with_prices(keyword, limit=RELATED_SEARCH_LIMIT)
    related = [p for p in products if p.id != current_product_id]
    logger.debug(f"Related products for '{keyword}': {len(related)}")
    return related[:MAX_RELATED_PRODUCTS]
