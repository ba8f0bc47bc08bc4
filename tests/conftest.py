"""Pytest configuration and fixtures"""
import os

import pytest
from fastapi.testclient import TestClient

# Keep module-level apps away from the working directory's data files
os.environ.setdefault("PRODUCTS_FILE", os.path.join(os.path.dirname(__file__), ".unused-products.json"))
os.environ.setdefault("CARTS_FILE", os.path.join(os.path.dirname(__file__), ".unused-carts.json"))

from cart_service.app.db.functions import CartManager  # noqa: E402
from catalog_service.app.db.functions import ProductManager  # noqa: E402
from main_service.app.main import create_app  # noqa: E402
from shop_common.config import Settings  # noqa: E402


@pytest.fixture
def products_path(tmp_path):
    return tmp_path / "products.json"


@pytest.fixture
def carts_path(tmp_path):
    return tmp_path / "carts.json"


@pytest.fixture
def product_manager(products_path):
    return ProductManager(products_path)


@pytest.fixture
def cart_manager(carts_path):
    return CartManager(carts_path)


@pytest.fixture
def sample_product():
    """Sample product payload"""
    return {
        "title": "God of War",
        "description": "juego de dioses",
        "price": 5000,
        "thumbnail": "https://example.com/gow.jpg",
        "code": "P001",
        "stock": 10,
    }


def make_product(index: int) -> dict:
    return {
        "title": f"Product {index}",
        "description": f"Description {index}",
        "price": 10 * index,
        "thumbnail": f"https://example.com/{index}.jpg",
        "code": f"C{index}",
        "stock": index,
    }


@pytest.fixture
def settings(products_path, carts_path):
    return Settings(products_file=str(products_path), carts_file=str(carts_path))


@pytest.fixture
def client(settings):
    """Test client with lifespan started"""
    with TestClient(create_app(settings)) as test_client:
        yield test_client
