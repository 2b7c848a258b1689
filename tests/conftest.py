"""Pytest configuration and fixtures"""
import os
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, Mock

# Keep the default manager away from the user's home directory
os.environ.setdefault("STORECART_STORAGE", "memory")

from storecart.cart import CartManager, MemoryGateway, Product


@pytest.fixture
def gateway():
    """Empty in-memory gateway"""
    return MemoryGateway()


@pytest_asyncio.fixture
async def manager(gateway):
    """Loaded cart manager backed by the in-memory gateway"""
    cart = CartManager(gateway=gateway)
    await cart.start()
    yield cart
    await cart.flush()


@pytest.fixture
def mock_redis_client():
    """Mock Upstash async Redis client"""
    client = Mock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    return client


@pytest.fixture
def sample_product():
    """Sample catalog product with sizes"""
    return {
        "id": "rad-1",
        "name": "RAD ONE V2 Triple Black",
        "price": 129.99,
        "category": "footwear",
        "sponsor": "RAD",
        "description": "Premium athletic shoe with triple black colorway.",
        "images": ["rad-one-v2-triple-black.webp"],
        "sizes": ["7", "8", "9", "10", "11", "12", "13"],
        "inStock": True,
        "featured": True,
    }


@pytest.fixture
def tee_product():
    """$25 product without sizes"""
    return Product(id="gr-tee", name="Gymreapers Tee", price=25, inStock=True, sponsor="GYMREAPERS")


@pytest.fixture
def band_product():
    """$15 product without sizes"""
    return Product(id="gowod-band", name="GOWOD Mobility Band", price=15, inStock=True, sponsor="GOWOD")


@pytest.fixture
def sold_out_product():
    """Out of stock product"""
    return {
        "id": "chilly-1",
        "name": "Chilly GOAT Ice Bath",
        "price": 499.0,
        "inStock": False,
    }
