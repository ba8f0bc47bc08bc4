"""
Tests for CartManager
"""
import asyncio
import json
from unittest.mock import Mock

import pytest

from cart_service.app.db.functions import CartManager
from shop_common.errors import InvalidCartItemError, NotFoundError, StorageIOError


class TestCreateCart:
    """Tests for cart creation and lookup."""

    @pytest.mark.asyncio
    async def test_create_empty_cart(self, cart_manager, carts_path):
        cart = await cart_manager.create()

        assert cart == {"id": 1, "products": []}
        assert json.loads(carts_path.read_text(encoding="utf-8")) == [cart]

    @pytest.mark.asyncio
    async def test_ids_follow_max(self, carts_path):
        carts_path.write_text(json.dumps([{"id": 4, "products": []}]), encoding="utf-8")
        manager = CartManager(carts_path)

        cart = await manager.create()
        assert cart["id"] == 5

    def test_get_unknown_cart(self, cart_manager):
        with pytest.raises(NotFoundError, match="Cart not found"):
            cart_manager.get_by_id(1)

    @pytest.mark.asyncio
    async def test_get_all(self, cart_manager):
        await cart_manager.create()
        await cart_manager.create()
        assert [c["id"] for c in cart_manager.get_all()] == [1, 2]


class TestAddProduct:
    """Tests for adding product references."""

    @pytest.mark.asyncio
    async def test_quantities_merge(self, cart_manager):
        await cart_manager.create()

        await cart_manager.add_product(1, 7, 2)
        cart = await cart_manager.add_product(1, 7, 3)

        assert cart["products"] == [{"id": 7, "quantity": 5}]

    @pytest.mark.asyncio
    async def test_default_quantity_and_order(self, cart_manager):
        await cart_manager.create()

        await cart_manager.add_product(1, 3)
        await cart_manager.add_product(1, 1)
        cart = await cart_manager.add_product(1, 3)

        assert cart["products"] == [{"id": 3, "quantity": 2}, {"id": 1, "quantity": 1}]

    @pytest.mark.asyncio
    async def test_product_is_not_checked_against_catalog(self, cart_manager):
        await cart_manager.create()
        cart = await cart_manager.add_product(1, 999)
        assert cart["products"] == [{"id": 999, "quantity": 1}]

    @pytest.mark.asyncio
    async def test_unknown_cart(self, cart_manager):
        with pytest.raises(NotFoundError):
            await cart_manager.add_product(3, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -2, "2", 1.5, True])
    async def test_invalid_quantity(self, cart_manager, quantity):
        await cart_manager.create()

        with pytest.raises(InvalidCartItemError):
            await cart_manager.add_product(1, 1, quantity)

        assert cart_manager.get_by_id(1)["products"] == []

    @pytest.mark.asyncio
    async def test_persisted_after_add(self, cart_manager, carts_path):
        await cart_manager.create()
        await cart_manager.add_product(1, 2, 4)

        reloaded = CartManager(carts_path)
        assert reloaded.get_by_id(1)["products"] == [{"id": 2, "quantity": 4}]


class TestCartMaintenance:
    """Tests for quantity updates, removal and clearing."""

    @pytest.mark.asyncio
    async def test_update_quantity(self, cart_manager):
        await cart_manager.create()
        await cart_manager.add_product(1, 2, 4)

        cart = await cart_manager.update_product_quantity(1, 2, 1)
        assert cart["products"] == [{"id": 2, "quantity": 1}]

    @pytest.mark.asyncio
    async def test_update_missing_line(self, cart_manager):
        await cart_manager.create()

        with pytest.raises(NotFoundError, match="Product not found in the cart"):
            await cart_manager.update_product_quantity(1, 2, 1)

    @pytest.mark.asyncio
    async def test_remove_product(self, cart_manager):
        await cart_manager.create()
        await cart_manager.add_product(1, 2)
        await cart_manager.add_product(1, 3)

        cart = await cart_manager.remove_product(1, 2)
        assert cart["products"] == [{"id": 3, "quantity": 1}]

        with pytest.raises(NotFoundError):
            await cart_manager.remove_product(1, 2)

    @pytest.mark.asyncio
    async def test_clear(self, cart_manager, carts_path):
        await cart_manager.create()
        await cart_manager.add_product(1, 2)

        cart = await cart_manager.clear(1)

        assert cart["products"] == []
        assert json.loads(carts_path.read_text(encoding="utf-8"))[0]["products"] == []

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back(self, cart_manager):
        await cart_manager.create()
        await cart_manager.add_product(1, 2)
        cart_manager._store.write = Mock(side_effect=StorageIOError("carts.json"))

        with pytest.raises(StorageIOError):
            await cart_manager.add_product(1, 2, 5)

        assert cart_manager.get_by_id(1)["products"] == [{"id": 2, "quantity": 1}]


class TestConcurrentUpdates:
    """Tests for overlapping mutations on one manager."""

    @pytest.mark.asyncio
    async def test_concurrent_adds_are_not_lost(self, cart_manager, carts_path):
        await cart_manager.create()

        await asyncio.gather(*(cart_manager.add_product(1, 7, 1) for _ in range(50)))

        assert cart_manager.get_by_id(1)["products"] == [{"id": 7, "quantity": 50}]
        stored = json.loads(carts_path.read_text(encoding="utf-8"))
        assert stored[0]["products"] == [{"id": 7, "quantity": 50}]

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, cart_manager):
        carts = await asyncio.gather(*(cart_manager.create() for _ in range(20)))

        assert sorted(c["id"] for c in carts) == list(range(1, 21))
