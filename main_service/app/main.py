# main_service/app/main.py
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from shop_common.api import register_exception_handlers
from shop_common.config import Settings, get_settings
from shop_common.logging import get_logger
from shop_common.realtime import FanoutNotifier, Notifier, RabbitNotifier, WebSocketHub

from cart_service.app.db.init_db import init_db as init_carts
from cart_service.app.main import router as carts_router
from catalog_service.app.db.functions import ProductManager
from catalog_service.app.db.init_db import init_db as init_products
from catalog_service.app.main import get_product_manager, router as products_router

logger = get_logger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def build_notifier(settings: Settings, hub: WebSocketHub) -> Notifier:
    notifiers = [hub]
    if settings.rabbitmq_url:
        notifiers.append(RabbitNotifier(settings.rabbitmq_url, settings.rabbitmq_exchange))
    return FanoutNotifier(notifiers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        hub = WebSocketHub()
        notifier = build_notifier(settings, hub)
        app.state.hub = hub
        app.state.notifier = notifier
        app.state.product_manager = init_products(settings, notifier)
        app.state.cart_manager = init_carts(settings, notifier)
        logger.info(
            f"Serving {len(app.state.product_manager.products)} products from {settings.products_file}, "
            f"{len(app.state.cart_manager.carts)} carts from {settings.carts_file}"
        )
        yield
        await notifier.close()

    app = FastAPI(title="shop-api", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(products_router)
    app.include_router(carts_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def read_home(request: Request, manager: ProductManager = Depends(get_product_manager)):
        return templates.TemplateResponse(
            request, "index.html", {"products": manager.get_all()}
        )

    @app.get("/realtimeproducts", response_class=HTMLResponse)
    async def realtime_products(request: Request, manager: ProductManager = Depends(get_product_manager)):
        return templates.TemplateResponse(
            request, "realtime_products.html", {"products": manager.get_all()}
        )

    @app.websocket("/ws/products")
    async def products_socket(websocket: WebSocket):
        hub: WebSocketHub = websocket.app.state.hub
        await hub.connect(websocket)
        try:
            await websocket.send_json(
                {"event": "products.snapshot", "data": websocket.app.state.product_manager.get_all()}
            )
            while True:
                # Client messages are ignored; receiving detects the disconnect
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(websocket)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("main_service.app.main:app", host=settings.host, port=settings.port)
