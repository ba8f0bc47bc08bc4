"""Real-time event publishing.

Managers call ``publish(event, data)`` after a mutation has been persisted.
Connected browsers receive events over a WebSocket; other services can
subscribe through a RabbitMQ fanout exchange.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Set

import aio_pika
from aio_pika.abc import AbstractExchange, AbstractRobustConnection
from fastapi import WebSocket

from shop_common.logging import get_logger

logger = get_logger(__name__)


class Notifier(ABC):
    @abstractmethod
    async def publish(self, event: str, data: Any) -> None:
        ...

    async def close(self) -> None:
        return None


class NullNotifier(Notifier):
    async def publish(self, event: str, data: Any) -> None:
        return None


class WebSocketHub(Notifier):
    """Broadcasts every event to all connected WebSocket clients."""

    def __init__(self):
        self._connections: Set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.debug(f"WebSocket connected, {self.connection_count} open")

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.debug(f"WebSocket disconnected, {self.connection_count} open")

    async def publish(self, event: str, data: Any) -> None:
        message = {"event": event, "data": data}
        stale = []
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Dropping WebSocket after send failure: {e}")
                stale.append(websocket)
        for websocket in stale:
            self.disconnect(websocket)


class RabbitNotifier(Notifier):
    """Publishes events as JSON messages on a durable fanout exchange."""

    def __init__(self, url: str, exchange_name: str = "shop_events"):
        self.url = url
        self.exchange_name = exchange_name
        self._connection: Optional[AbstractRobustConnection] = None
        self._exchange: Optional[AbstractExchange] = None

    async def connect(self) -> None:
        self._connection = await aio_pika.connect_robust(self.url)
        channel = await self._connection.channel()
        self._exchange = await channel.declare_exchange(
            self.exchange_name, aio_pika.ExchangeType.FANOUT, durable=True
        )
        logger.info(f"Connected to RabbitMQ exchange '{self.exchange_name}'")

    async def publish(self, event: str, data: Any) -> None:
        if self._exchange is None:
            await self.connect()
        message = aio_pika.Message(
            body=json.dumps({"event": event, "data": data}).encode(),
            content_type="application/json",
            type=event,
        )
        await self._exchange.publish(message, routing_key=event)

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._exchange = None


class FanoutNotifier(Notifier):
    """Forwards each event to several notifiers; one failing does not stop the rest."""

    def __init__(self, notifiers: Iterable[Notifier]):
        self.notifiers: List[Notifier] = list(notifiers)

    async def publish(self, event: str, data: Any) -> None:
        for notifier in self.notifiers:
            try:
                await notifier.publish(event, data)
            except Exception as e:
                logger.warning(f"{type(notifier).__name__} failed to publish {event}: {e}", exc_info=True)

    async def close(self) -> None:
        for notifier in self.notifiers:
            await notifier.close()
