# cart_service/app/db/init_db.py
from typing import Optional

from shop_common.config import Settings
from shop_common.realtime import Notifier

from cart_service.app.db.functions import CartManager


def init_db(settings: Settings, notifier: Optional[Notifier] = None) -> CartManager:
    return CartManager(
        settings.carts_file,
        notifier=notifier,
        strict_persistence=settings.strict_persistence,
    )
