"""
Database Service for the Price Tracker

All reads and writes go through the hosted backend:
- Nearby stores (geospatial RPC)
- Product search (ranking RPC) and creation
- Price submission and history
- Per-product price statistics and store comparison

Errors from the backend are logged and re-raised, except where a page can
degrade gracefully (product lookup, statistics, search with prices).
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from baas_client import BaasClient, BaasError
from location import rank_by_distance
from models import (
    Location,
    Price,
    PriceHistoryPoint,
    PriceSubmission,
    Product,
    ProductWithPrices,
    Store,
    StorePrice,
)
from price_service import PriceStats, compute_price_stats, latest_per_store

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 2000
SEARCH_LIMIT = 20
HISTORY_LIMIT = 50


class DatabaseService:
    """Typed access to backend tables, views and RPC functions"""

    def __init__(self, client: BaasClient):
        self.client = client

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def get_nearby_stores(self, lat: float, lng: float, radius: int = DEFAULT_RADIUS_METERS) -> List[Store]:
        """
        Stores within radius meters of a point, nearest first.

        Raises:
            BaasError: If the RPC fails
        """
        try:
            rows = self.client.rpc("get_nearby_stores", {
                "lat": lat,
                "lng": lng,
                "radius_meters": radius,
            })
        except BaasError as e:
            logger.error(f"Error fetching nearby stores: {e}")
            raise

        stores = [Store(**row) for row in rows or []]
        logger.info(f"Found {len(stores)} stores within {radius}m of ({lat:.4f}, {lng:.4f})")
        return rank_by_distance(stores, Location(lat=lat, lng=lng))

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def submit_price(self, submission: PriceSubmission) -> Price:
        """
        Record a price observation.

        Raises:
            BaasError: If the insert fails (unknown product/store, rejected price)
        """
        try:
            row = self.client.insert("prices", submission.to_row(), single=True)
        except BaasError as e:
            logger.error(f"Error submitting price: {e}")
            raise

        logger.info(
            f"✓ Price submitted: product={submission.product_id} "
            f"store={submission.store_id} price={submission.price}"
        )
        return Price(**row)

    def get_store_prices(self, store_id: str) -> List[Price]:
        """Latest price of every product at a store, newest first"""
        try:
            rows = self.client.select(
                "latest_prices",
                columns="*,product:products(*)",
                filters={"store_id": store_id},
                order="created_at",
                descending=True,
            )
        except BaasError as e:
            logger.error(f"Error fetching store prices: {e}")
            raise

        return [Price(**row) for row in rows or []]

    def get_product_price_history(self, product_id: str, store_id: Optional[str] = None) -> List[Price]:
        """Most recent raw price reports for a product, optionally at one store"""
        filters = {"product_id": product_id}
        if store_id:
            filters["store_id"] = store_id

        try:
            rows = self.client.select(
                "prices",
                columns="*,store:stores(*)",
                filters=filters,
                order="created_at",
                descending=True,
                limit=HISTORY_LIMIT,
            )
        except BaasError as e:
            logger.error(f"Error fetching price history: {e}")
            raise

        return [Price(**row) for row in rows or []]

    def get_product_price_stats(self, product_id: str) -> PriceStats:
        """Min / max / average of current prices; empty stats on any failure"""
        try:
            rows = self.client.select(
                "latest_prices",
                columns="price,store_id,created_at",
                filters={"product_id": product_id},
            )
        except BaasError as e:
            logger.warning(f"Price stats unavailable for {product_id}: {e}")
            return PriceStats.empty()

        if not rows:
            return PriceStats.empty()

        return compute_price_stats(row["price"] for row in latest_per_store(rows))

    def get_product_prices_with_distance(
        self,
        product_id: str,
        user_lat: Optional[float] = None,
        user_lng: Optional[float] = None,
    ) -> List[StorePrice]:
        """Current price per store, with distance when the user location is known"""
        try:
            rows = self.client.rpc("get_product_prices_with_distance", {
                "product_id_param": product_id,
                "user_lat": user_lat,
                "user_lng": user_lng,
            })
        except BaasError as e:
            logger.error(f"Error fetching product prices: {e}")
            raise

        return [StorePrice(**row) for row in rows or []]

    def get_price_history(self, product_id: str, period_days: int) -> List[PriceHistoryPoint]:
        """Daily min / avg / max aggregates over the last period_days"""
        try:
            rows = self.client.rpc("get_price_history", {
                "product_id_param": product_id,
                "period_days": period_days,
            })
        except BaasError as e:
            logger.error(f"Error fetching price history: {e}")
            raise

        return [PriceHistoryPoint(**row) for row in rows or []]

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def search_products(self, query: str) -> List[Product]:
        """Backend-ranked product search"""
        try:
            rows = self.client.rpc("search_products", {
                "search_query": query,
                "limit_count": SEARCH_LIMIT,
            })
        except BaasError as e:
            logger.error(f"Error searching products: {e}")
            raise

        return [Product(**row) for row in rows or []]

    def create_product(self, name: str, description: Optional[str] = None) -> Product:
        try:
            row = self.client.insert(
                "products",
                {"name": name, "description": description},
                single=True,
            )
        except BaasError as e:
            logger.error(f"Error creating product: {e}")
            raise

        logger.info(f"✓ Created product '{name}'")
        return Product(**row)

    def find_or_create_product(self, product_name: str) -> Product:
        """
        Match a typed product name to an existing product, creating it if none.

        Exact name match wins, then the top-ranked search result.
        """
        product_name = product_name.strip()
        products = self.search_products(product_name)

        if products:
            for product in products:
                if product.name == product_name:
                    return product
            return products[0]

        return self.create_product(product_name)

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        """Product by id, or None if missing or the lookup fails"""
        try:
            row = self.client.select("products", filters={"id": product_id}, single=True)
            return Product(**row)
        except (BaasError, ValidationError, TypeError) as e:
            logger.error(f"Error fetching product {product_id}: {e}")
            return None

    def search_products_with_prices(self, query: str, limit: int = 10) -> List[ProductWithPrices]:
        """
        Name search annotated with each product's current min and max price.

        Never raises: a failed search yields [], a failed price lookup
        leaves that product's prices empty.
        """
        try:
            rows = self.client.select(
                "products",
                ilike=("name", f"%{query}%"),
                limit=limit,
            )
        except BaasError as e:
            logger.error(f"Error searching products: {e}")
            return []

        results = []
        for row in rows or []:
            try:
                product = ProductWithPrices(**row)
            except (ValidationError, TypeError) as e:
                logger.warning(f"Skipping malformed product row: {e}")
                continue
            try:
                price_rows = self.client.select(
                    "latest_prices",
                    columns="price",
                    filters={"product_id": product.id},
                )
            except BaasError as e:
                logger.warning(f"Prices unavailable for {product.id}: {e}")
                price_rows = []

            values = [r["price"] for r in price_rows or [] if r.get("price") is not None]
            if values:
                product.min_price = min(values)
                product.max_price = max(values)
            results.append(product)

        return results


# Convenience function for global access
_database: Optional[DatabaseService] = None


def get_database() -> DatabaseService:
    """
    Get the global database service.
    Initialize from environment settings if not already created.
    """
    global _database

    if _database is None:
        from config import Settings

        settings = Settings.from_env()
        _database = DatabaseService(BaasClient(settings.supabase_url, settings.supabase_anon_key))

    return _database
