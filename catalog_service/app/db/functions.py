# catalog_service/app/db/functions.py
from typing import Any, Dict, Iterable, List, Optional

from shop_common.errors import (
    ERROR_PRODUCT_CODE_IN_USE,
    ERROR_PRODUCT_ID_IMMUTABLE,
    ERROR_PRODUCT_MISSING_FIELDS,
    ERROR_PRODUCT_NOT_FOUND,
    ImmutableFieldError,
    InvalidProductError,
)
from shop_common.logging import get_logger
from shop_common.realtime import Notifier
from shop_common.storage import JsonCollectionManager

logger = get_logger(__name__)

REQUIRED_FIELDS = ("title", "description", "price", "code", "stock")


def parse_limit(limit: Any) -> Optional[int]:
    """Positive integer value of limit, or None when it should be ignored."""
    if limit is None or isinstance(limit, bool):
        return None
    try:
        value = int(str(limit).strip())
    except ValueError:
        return None
    return value if value > 0 else None


class ProductManager(JsonCollectionManager):
    """Product catalog stored as a JSON array in a single file."""

    entity_name = "product"
    not_found_message = ERROR_PRODUCT_NOT_FOUND

    def __init__(
        self,
        path,
        notifier: Optional[Notifier] = None,
        strict_persistence: bool = True,
        required_fields: Iterable[str] = REQUIRED_FIELDS,
    ):
        self.required_fields = tuple(required_fields)
        super().__init__(path, notifier=notifier, strict_persistence=strict_persistence)

    @property
    def products(self) -> List[Dict[str, Any]]:
        return self.records

    def _code_in_use(self, code: Any, exclude_id: Optional[int] = None) -> bool:
        return any(p.get("code") == code and p.get("id") != exclude_id for p in self.records)

    def validate(self, fields: Dict[str, Any]) -> None:
        missing = [name for name in self.required_fields if not fields.get(name)]
        if missing:
            raise InvalidProductError(f"{ERROR_PRODUCT_MISSING_FIELDS}: {', '.join(missing)}")
        if self._code_in_use(fields["code"]):
            raise InvalidProductError(f"{ERROR_PRODUCT_CODE_IN_USE}: '{fields['code']}'")

    def get_all(self, limit: Any = None) -> List[Dict[str, Any]]:
        """All products, or the first ``limit`` of them when limit is a positive integer."""
        count = parse_limit(limit)
        if count is None:
            return list(self.records)
        return self.records[:count]

    async def add(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(fields)
        if fields.pop("id", None) is not None:
            logger.debug("Ignoring client supplied id on product create")

        async with self._lock:
            self.validate(fields)
            snapshot = self._snapshot()
            product = {"id": self.next_id(), "status": True, **fields}
            self.records.append(product)
            persisted = await self._persist(snapshot)

        logger.info(f"Product {product['id']} created with code '{product['code']}'")
        if persisted:
            await self._publish("product.created", product)
        return product

    async def update(self, product_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            product = self.get_by_id(product_id)
            if "id" in fields:
                raise ImmutableFieldError("id", ERROR_PRODUCT_ID_IMMUTABLE)
            if "code" in fields and self._code_in_use(fields["code"], exclude_id=product_id):
                raise InvalidProductError(f"{ERROR_PRODUCT_CODE_IN_USE}: '{fields['code']}'")

            snapshot = self._snapshot()
            product.update(fields)
            persisted = await self._persist(snapshot)

        logger.info(f"Product {product_id} updated: {sorted(fields)}")
        if persisted:
            await self._publish("product.updated", product)
        return product

    async def delete(self, product_id: int) -> Dict[str, Any]:
        async with self._lock:
            product = self.get_by_id(product_id)
            snapshot = self._snapshot()
            self.records.remove(product)
            persisted = await self._persist(snapshot)

        logger.info(f"Product {product_id} deleted")
        if persisted:
            await self._publish("product.deleted", product)
        return product
