# catalog_service/app/db/schemas.py

from pydantic import BaseModel, ConfigDict
from typing import Optional, Union


# Request body for POST /api/products; presence is checked by ProductManager
class ProductBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Union[int, float]] = None
    code: Optional[str] = None
    stock: Optional[int] = None
    thumbnail: Optional[str] = None
    # null or non-boolean values are rejected before they reach the manager
    status: bool = True


# Request body for PUT /api/products/{id}; id is accepted so it can be rejected
class ProductUpdate(ProductBase):
    id: Optional[int] = None


class Product(ProductBase):
    id: int


class ProductDeleted(BaseModel):
    message: str
    product: Product
