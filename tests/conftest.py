"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock, AsyncMock

# Set test environment variables before gomarketplace reads them
os.environ.setdefault("CART_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.pop("CART_REFRESH_ON_ADD", None)

from gomarketplace.cart import MemoryCartStore


CART_KEY = "@GoMarketplace:test"


@pytest.fixture
def cart_key():
    """Storage key used by manager tests"""
    return CART_KEY


@pytest.fixture
def memory_store():
    """Empty in-memory cart store"""
    return MemoryCartStore()


@pytest.fixture
def mock_store():
    """Store double with async get/set"""
    store = Mock()
    store.get = AsyncMock(return_value=None)
    store.set = AsyncMock(return_value=None)
    return store


@pytest.fixture
def product_a():
    """Sample catalog product"""
    return {
        "id": "A",
        "title": "Cadeira Gamer",
        "image_url": "https://cdn.example.com/a.png",
        "price": 10,
    }


@pytest.fixture
def product_b():
    """Second sample catalog product"""
    return {
        "id": "B",
        "title": "Fone de Ouvido",
        "image_url": "https://cdn.example.com/b.png",
        "price": "199.90",
    }


@pytest.fixture
def mock_redis():
    """Mock Upstash async Redis client"""
    redis = Mock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    return redis
