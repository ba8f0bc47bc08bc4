# catalog_service/app/main.py

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from shop_common.api import parse_id, register_exception_handlers
from shop_common.config import get_settings
from shop_common.errors import ERROR_INVALID_PRODUCT_ID, NotFoundError
from shop_common.logging import get_logger

from catalog_service.app.db.functions import ProductManager
from catalog_service.app.db.init_db import init_db
from catalog_service.app.db.schemas import Product as ProductSchema, ProductBase, ProductDeleted, ProductUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def get_product_manager(request: Request) -> ProductManager:
    return request.app.state.product_manager


@router.get("", response_model=List[ProductSchema])
async def read_products(
    limit: Optional[str] = Query(default=None),
    manager: ProductManager = Depends(get_product_manager),
):
    products = manager.get_all(limit)
    logger.debug(f"read_products: limit={limit!r}, returned {len(products)}")
    return products


@router.get("/{pid}", response_model=ProductSchema)
async def read_product(pid: str, manager: ProductManager = Depends(get_product_manager)):
    return manager.get_by_id(parse_id(pid, ERROR_INVALID_PRODUCT_ID))


@router.post("", response_model=ProductSchema, status_code=201)
async def create_new_product(product: ProductBase, manager: ProductManager = Depends(get_product_manager)):
    return await manager.add(product.model_dump(exclude_unset=True))


@router.put("/{pid}", response_model=ProductSchema)
async def update_existing_product(
    pid: str, product: ProductUpdate, manager: ProductManager = Depends(get_product_manager)
):
    product_id = parse_id(pid, ERROR_INVALID_PRODUCT_ID)
    try:
        return await manager.update(product_id, product.model_dump(exclude_unset=True))
    except NotFoundError as e:
        # Updates against a missing product are a bad request, not a 404
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/{pid}", response_model=ProductDeleted)
async def delete_existing_product(pid: str, manager: ProductManager = Depends(get_product_manager)):
    deleted_product = await manager.delete(parse_id(pid, ERROR_INVALID_PRODUCT_ID))
    return {"message": "Product deleted successfully", "product": deleted_product}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    app.state.product_manager = init_db(get_settings())
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
