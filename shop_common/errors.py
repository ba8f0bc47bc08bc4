"""
Domain errors raised by the entity managers.

The HTTP layer maps each class to a status code, see
shop_common.api.register_exception_handlers.
"""

from typing import Optional

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_PRODUCT_MISSING_FIELDS = "Missing required fields"
ERROR_PRODUCT_CODE_IN_USE = "Product code already in use"
ERROR_PRODUCT_ID_IMMUTABLE = "Cannot update product ID"

# Cart errors
ERROR_CART_NOT_FOUND = "Cart not found"
ERROR_CART_ITEM_NOT_FOUND = "Product not found in the cart"
ERROR_INVALID_QUANTITY = "Quantity must be a positive integer"

# Storage errors
ERROR_STORAGE_WRITE = "Could not persist changes"

# Request errors
ERROR_INVALID_PRODUCT_ID = "Invalid product ID"
ERROR_INVALID_CART_ID = "Invalid cart ID"
ERROR_INVALID_CART_OR_PRODUCT_ID = "Invalid cart or product ID"
ERROR_INVALID_REQUEST = "Invalid request"


class ShopError(Exception):
    """Base class for errors that surface to API clients."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidProductError(ShopError):
    pass


class InvalidCartItemError(ShopError):
    pass


class NotFoundError(ShopError):
    pass


class ImmutableFieldError(ShopError):
    def __init__(self, field_name: str, message: Optional[str] = None):
        super().__init__(message or f"Field '{field_name}' cannot be modified")
        self.field_name = field_name


class StorageIOError(ShopError):
    def __init__(self, path: str, message: str = ERROR_STORAGE_WRITE):
        super().__init__(message)
        self.path = path
