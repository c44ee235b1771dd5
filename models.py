"""
Pydantic models for Price Tracker records

Rows as returned by the BaaS:
- stores: Physical retail locations (coordinates come from RPC results)
- products: Tracked items
- prices: Reported price observations linking a product to a store
- latest_prices (view): Most recent price per product/store
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Location(BaseModel):
    lat: float
    lng: float


class Store(BaseModel):
    """Physical retail location"""
    id: str
    name: str
    address: Optional[str] = None
    distance_meters: Optional[float] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.location_lat is not None and self.location_lng is not None


class Product(BaseModel):
    """Tracked item"""
    id: str
    name: str
    description: Optional[str] = None
    jan_code: Optional[str] = None
    image_url: Optional[str] = None


class ProductWithPrices(Product):
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class Price(BaseModel):
    """Reported price observation"""
    id: str
    product_id: str
    store_id: str
    price: float
    reported_by: Optional[str] = None
    created_at: datetime
    product: Optional[Product] = None
    store: Optional[Store] = None


class PriceSubmission(BaseModel):
    """Price observation about to be reported"""
    product_id: str
    store_id: str
    price: float
    anonymous_user_id: Optional[str] = None

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("price must be greater than zero")
        return value

    def to_row(self) -> dict:
        """Payload for the prices table"""
        return {
            "product_id": self.product_id,
            "store_id": self.store_id,
            "price": self.price,
            "reported_by": self.anonymous_user_id,
        }


class StorePrice(BaseModel):
    """One store's current price for a product, optionally with distance"""
    store_id: str
    store_name: str
    address: Optional[str] = None
    price: float
    distance_meters: Optional[float] = None
    last_updated: datetime


class PriceHistoryPoint(BaseModel):
    """Daily price aggregate"""
    day: date = Field(..., alias="date")
    min_price: float
    avg_price: float
    max_price: float
    sample_count: int

    model_config = {"populate_by_name": True}
