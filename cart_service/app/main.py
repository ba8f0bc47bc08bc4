# cart_service/app/main.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from shop_common.api import parse_id, register_exception_handlers
from shop_common.config import get_settings
from shop_common.errors import ERROR_INVALID_CART_ID, ERROR_INVALID_CART_OR_PRODUCT_ID, NotFoundError
from shop_common.logging import get_logger

from cart_service.app.db.functions import CartManager
from cart_service.app.db.init_db import init_db
from cart_service.app.db.schemas import CartItemBase, CartResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api/carts", tags=["carts"])


def get_cart_manager(request: Request) -> CartManager:
    return request.app.state.cart_manager


def parse_cart_and_product(cid: str, pid: str):
    return (
        parse_id(cid, ERROR_INVALID_CART_OR_PRODUCT_ID),
        parse_id(pid, ERROR_INVALID_CART_OR_PRODUCT_ID),
    )


@router.post("", response_model=CartResponse, status_code=201)
async def create_cart(manager: CartManager = Depends(get_cart_manager)):
    return await manager.create()


@router.get("", response_model=List[CartResponse])
async def read_carts(manager: CartManager = Depends(get_cart_manager)):
    return manager.get_all()


@router.get("/{cid}", response_model=CartResponse)
async def read_cart(cid: str, manager: CartManager = Depends(get_cart_manager)):
    return manager.get_by_id(parse_id(cid, ERROR_INVALID_CART_ID))


@router.delete("/{cid}", response_model=CartResponse)
async def clear_cart(cid: str, manager: CartManager = Depends(get_cart_manager)):
    return await manager.clear(parse_id(cid, ERROR_INVALID_CART_ID))


# Добавление товара в корзину
@router.post("/{cid}/product/{pid}", response_model=CartResponse)
async def add_to_cart(
    cid: str,
    pid: str,
    item: Optional[CartItemBase] = Body(default=None),
    manager: CartManager = Depends(get_cart_manager),
):
    cart_id, product_id = parse_cart_and_product(cid, pid)
    quantity = item.quantity if item else 1
    logger.debug(f"add_to_cart: cart={cart_id} product={product_id} quantity={quantity}")
    try:
        return await manager.add_product(cart_id, product_id, quantity)
    except NotFoundError as e:
        # Неизвестная корзина при добавлении - ошибка запроса, а не 404
        raise HTTPException(status_code=400, detail=e.message)


# Обновление количества товара в корзине
@router.put("/{cid}/product/{pid}", response_model=CartResponse)
async def update_cart_item_quantity(
    cid: str, pid: str, item: CartItemBase, manager: CartManager = Depends(get_cart_manager)
):
    cart_id, product_id = parse_cart_and_product(cid, pid)
    return await manager.update_product_quantity(cart_id, product_id, item.quantity)


# Удаление товара из корзины
@router.delete("/{cid}/product/{pid}", response_model=CartResponse)
async def remove_from_cart(cid: str, pid: str, manager: CartManager = Depends(get_cart_manager)):
    cart_id, product_id = parse_cart_and_product(cid, pid)
    return await manager.remove_product(cart_id, product_id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    app.state.cart_manager = init_db(get_settings())
    yield


app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(router)
