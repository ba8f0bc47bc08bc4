# cart_service/app/db/functions.py
from typing import Any, Dict, List

from shop_common.errors import (
    ERROR_CART_ITEM_NOT_FOUND,
    ERROR_CART_NOT_FOUND,
    ERROR_INVALID_QUANTITY,
    InvalidCartItemError,
    NotFoundError,
)
from shop_common.logging import get_logger
from shop_common.storage import JsonCollectionManager

logger = get_logger(__name__)


def check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidCartItemError(ERROR_INVALID_QUANTITY)
    return quantity


def find_item(cart: Dict[str, Any], product_id: int):
    for item in cart.setdefault("products", []):
        if item.get("id") == product_id:
            return item
    return None


class CartManager(JsonCollectionManager):
    """
    Shopping carts stored as a JSON array in a single file.

    A cart holds ``{"id": product_id, "quantity": n}`` lines. Product ids are
    not checked against the catalog.
    """

    entity_name = "cart"
    not_found_message = ERROR_CART_NOT_FOUND

    @property
    def carts(self) -> List[Dict[str, Any]]:
        return self.records

    def get_all(self) -> List[Dict[str, Any]]:
        return list(self.records)

    async def create(self) -> Dict[str, Any]:
        async with self._lock:
            snapshot = self._snapshot()
            cart = {"id": self.next_id(), "products": []}
            self.records.append(cart)
            persisted = await self._persist(snapshot)

        logger.info(f"Cart {cart['id']} created")
        if persisted:
            await self._publish("cart.created", cart)
        return cart

    async def add_product(self, cart_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        """Add ``quantity`` units of a product, merging into an existing line."""
        quantity = check_quantity(quantity)
        async with self._lock:
            cart = self.get_by_id(cart_id)
            snapshot = self._snapshot()
            item = find_item(cart, product_id)
            if item:
                item["quantity"] += quantity
            else:
                cart["products"].append({"id": product_id, "quantity": quantity})
            persisted = await self._persist(snapshot)

        logger.info(f"Cart {cart_id}: added {quantity} x product {product_id}")
        if persisted:
            await self._publish("cart.updated", cart)
        return cart

    async def update_product_quantity(self, cart_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        quantity = check_quantity(quantity)
        async with self._lock:
            cart = self.get_by_id(cart_id)
            item = find_item(cart, product_id)
            if not item:
                raise NotFoundError(ERROR_CART_ITEM_NOT_FOUND)
            snapshot = self._snapshot()
            item["quantity"] = quantity
            persisted = await self._persist(snapshot)

        logger.info(f"Cart {cart_id}: product {product_id} quantity set to {quantity}")
        if persisted:
            await self._publish("cart.updated", cart)
        return cart

    async def remove_product(self, cart_id: int, product_id: int) -> Dict[str, Any]:
        async with self._lock:
            cart = self.get_by_id(cart_id)
            item = find_item(cart, product_id)
            if not item:
                raise NotFoundError(ERROR_CART_ITEM_NOT_FOUND)
            snapshot = self._snapshot()
            cart["products"].remove(item)
            persisted = await self._persist(snapshot)

        logger.info(f"Cart {cart_id}: product {product_id} removed")
        if persisted:
            await self._publish("cart.updated", cart)
        return cart

    async def clear(self, cart_id: int) -> Dict[str, Any]:
        async with self._lock:
            cart = self.get_by_id(cart_id)
            snapshot = self._snapshot()
            cart["products"] = []
            persisted = await self._persist(snapshot)

        logger.info(f"Cart {cart_id} cleared")
        if persisted:
            await self._publish("cart.updated", cart)
        return cart
