"""
Price submission flow

Validates what the user typed, resolves the product (the one picked from
search results, or find-or-create by name), attaches the anonymous user id
and records the price.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from anonymous_user import AnonymousUserService
from baas_client import BaasError
from database import DatabaseService
from models import Price, PriceSubmission, Product, Store

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    """User-facing failure of the price submission form"""
    pass


@dataclass
class SubmissionResult:
    product: Product
    price: Price


def validate_submission(product_name: str, price_text: str) -> float:
    """
    Check required fields and parse the price.

    Returns:
        The price as a positive float

    Raises:
        SubmissionError: If a field is empty or the price is not a positive number
    """
    if not product_name.strip() or not price_text.strip():
        raise SubmissionError("Enter a product name and price")

    try:
        price = float(price_text)
    except ValueError:
        raise SubmissionError("Enter a valid price")

    if not math.isfinite(price) or price <= 0:
        raise SubmissionError("Enter a valid price")

    return price


def submit_observed_price(
    db: DatabaseService,
    users: AnonymousUserService,
    store: Store,
    product_name: str,
    price_text: str,
    selected_product: Optional[Product] = None,
) -> SubmissionResult:
    """
    Run the whole submission for one store.

    Raises:
        SubmissionError: On validation or backend failure
    """
    price_value = validate_submission(product_name, price_text)

    try:
        product = selected_product or db.find_or_create_product(product_name)
        anonymous_user_id = users.get_anonymous_user_id()

        price = db.submit_price(PriceSubmission(
            product_id=product.id,
            store_id=store.id,
            price=price_value,
            anonymous_user_id=anonymous_user_id,
        ))
    except BaasError as e:
        logger.error(f"Failed to submit price: {e}")
        raise SubmissionError("Failed to submit price") from e

    logger.info(f"✓ {product.name} @ {store.name}: {price_value}")
    return SubmissionResult(product=product, price=price)
