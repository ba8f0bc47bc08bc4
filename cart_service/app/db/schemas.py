# cart_service/app/db/schemas.py
from pydantic import BaseModel
from typing import List


class CartItemBase(BaseModel):
    quantity: int = 1


class CartItemResponse(BaseModel):
    id: int
    quantity: int


class CartResponse(BaseModel):
    id: int
    products: List[CartItemResponse] = []
