"""Pytest configuration and fixtures"""
import os
import pytest
from decimal import Decimal

# Set test environment variables
os.environ.setdefault("STOREFRONT_API_URL", "http://testserver/api")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from storefront.cart import CartStore, KeyValueCartStorage
from storefront.db import MemoryKeyValueStore
from storefront.models import DiscountTier, Product


def make_product(
    product_id: str = "prod-1",
    price="500",
    stock: int = 10,
    tiers=None,
    category: str = "Electronics",
    title: str = "Wireless Mouse",
) -> Product:
    """Build a product the way the API would return it."""
    return Product.model_validate({
        "_id": product_id,
        "title": title,
        "price": price,
        "stock": stock,
        "category": category,
        "quantityDiscounts": tiers or [],
    })


@pytest.fixture
def tiered_product():
    """Price 500 with 10% off from 5 units and 20% off from 10 units"""
    return make_product(
        tiers=[
            {"minQty": 5, "discountPercent": 10},
            {"minQty": 10, "discountPercent": 20},
        ],
        stock=50,
    )


@pytest.fixture
def plain_product():
    """Product without quantity discounts"""
    return make_product(product_id="prod-2", price="120.50", stock=5, title="USB Cable")


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store"""
    return MemoryKeyValueStore()


@pytest.fixture
def cart_storage(memory_store):
    """Cart storage backed by the in-memory store"""
    return KeyValueCartStorage(memory_store)


@pytest.fixture
def failures():
    """Collects persistence failures reported by the cart"""
    return []


@pytest.fixture
def cart(cart_storage, failures):
    """Cart store wired to in-memory storage"""
    return CartStore(storage=cart_storage, on_persistence_failure=failures.append)


@pytest.fixture
def sample_address():
    """Sample shipping address"""
    return {
        "fullName": "Ayesha Khan",
        "address": "12 Canal Road",
        "city": "Lahore",
        "state": "Punjab",
        "zipCode": "54000",
        "phone": "+92 300 1234567",
    }


def tier(min_qty, percent) -> DiscountTier:
    """Tier that bypasses ingestion validation"""
    return DiscountTier.model_construct(min_qty=min_qty, discount_percent=Decimal(str(percent)))


@pytest.fixture
def product_factory():
    """Factory for products with custom price/stock/tiers"""
    return make_product


@pytest.fixture
def raw_tier():
    """Factory for tiers that skip validation (bad data from old caches)"""
    return tier


@pytest.fixture
def sample_product():
    """Sample product data as returned by the API"""
    return {
        "_id": "product-123",
        "title": "Mechanical Keyboard",
        "price": 8500,
        "stock": 12,
        "category": "Electronics",
        "image": None,
        "quantityDiscounts": [
            {"minQty": 5, "discountPercent": 10},
            {"minQty": 10, "discountPercent": 15},
        ],
        "rating": 4.5,
    }
