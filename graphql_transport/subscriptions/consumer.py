"""
Channels consumer running the GraphQL subscription bridge.

The consumer negotiates the sub-protocol during the handshake, turns its
receive/send callbacks into the duplex stream the bridge consumes, and ends the
inbound stream when the client disconnects.

Usage:
    from graphql_transport.subscriptions import get_subscription_consumer

    websocket_urlpatterns = [
        path("graphql/ws/", get_subscription_consumer(schema).as_asgi()),
    ]
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from ..settings import get_transport_settings
from .bridge import (
    MessageType,
    SubscriptionEngine,
    WebSocketMessage,
    graphql_subscription_with_data,
)
from .protocol import WebSocketProtocols, negotiate_protocol

logger = logging.getLogger(__name__)

_END_OF_STREAM = object()


class ConsumerWebSocket:
    """Duplex stream over a channels consumer."""

    def __init__(self, consumer: AsyncWebsocketConsumer):
        self._consumer = consumer
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def feed(self, message: WebSocketMessage) -> None:
        self._queue.put_nowait(message)

    def finish(self) -> None:
        self.closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    async def __aiter__(self) -> AsyncIterator[WebSocketMessage]:
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    async def send(self, message: WebSocketMessage) -> None:
        if self.closed:
            raise ConnectionError("WebSocket is closed")
        if message.type is MessageType.TEXT:
            await self._consumer.send(text_data=message.data)
        elif message.type is MessageType.BINARY:
            await self._consumer.send(bytes_data=message.data)
        elif message.type is MessageType.CLOSE:
            self.closed = True
            await self._consumer.close(code=message.code, reason=message.reason or None)
        else:
            logger.debug("Ignoring outbound %s frame", message.type.value)


class GraphQLSubscriptionConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for GraphQL subscriptions.

    Set ``schema`` and optionally ``engine`` on a subclass, or use
    ``get_subscription_consumer``. Without an ``engine`` the callable named by
    the ``subscription_engine`` transport setting is used. Override
    ``initialize`` to turn the connection init payload into context data.
    """

    schema: Any = None
    engine: Optional[SubscriptionEngine] = None
    shutdown_timeout: Optional[float] = None

    protocol: WebSocketProtocols = WebSocketProtocols.default()
    websocket: Optional[ConsumerWebSocket] = None
    _bridge_task: Optional[asyncio.Future] = None
    _disconnected = False

    def get_schema(self) -> Any:
        if self.schema is None:
            raise ImproperlyConfigured(
                f"{type(self).__name__} requires a 'schema' attribute"
            )
        return self.schema

    def get_engine(self) -> SubscriptionEngine:
        engine = type(self).engine
        if engine is not None:
            return engine
        engine_path = get_transport_settings().subscription_engine
        if not engine_path:
            raise ImproperlyConfigured(
                "No GraphQL subscription engine configured. Set "
                "GRAPHQL_TRANSPORT['subscription_engine'] or the consumer's 'engine'."
            )
        return import_string(engine_path)

    def get_shutdown_timeout(self) -> float:
        if self.shutdown_timeout is not None:
            return self.shutdown_timeout
        return get_transport_settings().subscription_shutdown_timeout

    async def initialize(self, payload: Any) -> dict:
        """Convert the connection init payload into session context data."""
        return {}

    async def connect(self):
        offered = list(self.scope.get("subprotocols") or [])
        self.protocol = negotiate_protocol(offered)
        schema = self.get_schema()
        engine = self.get_engine()

        subprotocol = self.protocol.sec_websocket_protocol
        await self.accept(subprotocol=subprotocol if subprotocol in offered else None)

        self.websocket = ConsumerWebSocket(self)
        self._bridge_task = asyncio.ensure_future(self._run_bridge(schema, engine))

    async def _run_bridge(self, schema: Any, engine: SubscriptionEngine) -> None:
        try:
            await graphql_subscription_with_data(
                self.websocket, schema, self.protocol, self.initialize, engine
            )
        except Exception as exc:
            logger.warning("GraphQL subscription session ended with an error: %s", exc)

        if not self._disconnected and not self.websocket.closed:
            self.websocket.closed = True
            await self.close()

    async def receive(self, text_data=None, bytes_data=None):
        if self.websocket is None:
            return
        if text_data is not None:
            self.websocket.feed(WebSocketMessage.text(text_data))
        elif bytes_data is not None:
            self.websocket.feed(WebSocketMessage.binary(bytes_data))

    async def disconnect(self, code):
        self._disconnected = True
        if self.websocket is None or self._bridge_task is None:
            return
        self.websocket.finish()
        _, pending = await asyncio.wait(
            {self._bridge_task}, timeout=self.get_shutdown_timeout()
        )
        if pending:
            logger.debug("Subscription bridge did not stop after disconnect, cancelling")
            self._bridge_task.cancel()


def get_subscription_consumer(
    schema: Any, engine: Optional[SubscriptionEngine] = None
) -> type[GraphQLSubscriptionConsumer]:
    """Return a consumer class bound to ``schema`` (and ``engine`` when given)."""
    attrs: dict[str, Any] = {"schema": schema}
    if engine is not None:
        attrs["engine"] = staticmethod(engine)
    return type("BoundGraphQLSubscriptionConsumer", (GraphQLSubscriptionConsumer,), attrs)
