# catalog_service/app/db/init_db.py
from typing import Optional

from shop_common.config import Settings
from shop_common.realtime import Notifier

from catalog_service.app.db.functions import REQUIRED_FIELDS, ProductManager


def init_db(settings: Settings, notifier: Optional[Notifier] = None) -> ProductManager:
    required = REQUIRED_FIELDS
    if settings.product_require_thumbnail:
        required = REQUIRED_FIELDS + ("thumbnail",)
    return ProductManager(
        settings.products_file,
        notifier=notifier,
        strict_persistence=settings.strict_persistence,
        required_fields=required,
    )
