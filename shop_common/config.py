# shop_common/config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    products_file: str = "products.json"
    carts_file: str = "carts.json"
    # Roll back and raise when a write to the backing file fails
    strict_persistence: bool = True
    product_require_thumbnail: bool = False
    rabbitmq_url: Optional[str] = None
    rabbitmq_exchange: str = "shop_events"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            products_file=os.getenv("PRODUCTS_FILE", "products.json"),
            carts_file=os.getenv("CARTS_FILE", "carts.json"),
            strict_persistence=_env_bool("STRICT_PERSISTENCE", True),
            product_require_thumbnail=_env_bool("PRODUCT_REQUIRE_THUMBNAIL", False),
            rabbitmq_url=os.getenv("RABBITMQ_URL") or None,
            rabbitmq_exchange=os.getenv("RABBITMQ_EXCHANGE", "shop_events"),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
