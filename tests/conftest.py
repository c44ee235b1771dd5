"""Shared fixtures: a mocked backend client and sample rows."""

from unittest.mock import MagicMock

import pytest

from baas_client import BaasClient
from database import DatabaseService


@pytest.fixture
def client():
    return MagicMock(spec=BaasClient)


@pytest.fixture
def db(client):
    return DatabaseService(client)


@pytest.fixture
def store_rows():
    return [
        {
            "id": "store-far",
            "name": "Test Store 2",
            "address": "Test Address 2",
            "distance_meters": 1500,
            "location_lat": 35.6900,
            "location_lng": 139.7700,
        },
        {
            "id": "store-near",
            "name": "Test Store 1",
            "address": "Test Address 1",
            "distance_meters": 500,
            "location_lat": 35.6812,
            "location_lng": 139.7671,
        },
    ]


@pytest.fixture
def price_row():
    return {
        "id": "price-1",
        "product_id": "prod1",
        "store_id": "store1",
        "price": 298,
        "reported_by": "user1",
        "created_at": "2024-01-01T00:00:00Z",
    }
