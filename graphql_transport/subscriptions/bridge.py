"""
Bridge a duplex WebSocket message stream to a GraphQL subscription engine.

The transport is split in two halves. Inbound text and binary frames are fed,
as raw bytes, to the protocol engine; the inbound side ends at the first
transport error. Every message the engine produces is translated into a
transport frame and sent; send failures are ignored. The session lasts until
the engine stops producing messages.

The engine is any callable with the signature::

    engine(schema, inbound, initializer, protocol) -> AsyncIterator[WsMessage]

where ``inbound`` is an async iterator of ``bytes`` and ``initializer`` turns
the ``connection_init`` payload into the session context data.
"""

from __future__ import annotations

import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol, Union

from .protocol import WebSocketProtocols

logger = logging.getLogger(__name__)

Initializer = Callable[[Any], Union[Awaitable[dict], dict]]
SubscriptionEngine = Callable[
    [Any, AsyncIterator[bytes], Callable[[Any], Awaitable[dict]], WebSocketProtocols],
    AsyncIterator["WsMessage"],
]


class MessageType(enum.Enum):
    TEXT = "text"
    BINARY = "binary"
    PING = "ping"
    PONG = "pong"
    CLOSE = "close"


@dataclass(frozen=True)
class WebSocketMessage:
    """A frame as exchanged with the WebSocket transport."""

    type: MessageType
    data: Union[str, bytes] = b""
    code: Optional[int] = None
    reason: str = ""

    @classmethod
    def text(cls, data: str) -> "WebSocketMessage":
        return cls(MessageType.TEXT, data)

    @classmethod
    def binary(cls, data: bytes) -> "WebSocketMessage":
        return cls(MessageType.BINARY, data)

    @classmethod
    def close(cls, code: int, reason: str = "") -> "WebSocketMessage":
        return cls(MessageType.CLOSE, code=code, reason=reason)

    def is_data(self) -> bool:
        return self.type in (MessageType.TEXT, MessageType.BINARY)

    def into_bytes(self) -> bytes:
        if isinstance(self.data, str):
            return self.data.encode("utf-8")
        return bytes(self.data)


class WsMessageKind(enum.Enum):
    TEXT = "text"
    CLOSE = "close"


@dataclass(frozen=True)
class WsMessage:
    """A message produced by the subscription protocol engine."""

    kind: WsMessageKind
    data: str = ""
    code: int = 1000
    reason: str = ""

    @classmethod
    def text(cls, data: str) -> "WsMessage":
        return cls(WsMessageKind.TEXT, data=data)

    @classmethod
    def close(cls, code: int, reason: str = "") -> "WsMessage":
        return cls(WsMessageKind.CLOSE, code=code, reason=reason)


class DuplexWebSocket(Protocol):
    """The transport side of the bridge."""

    def __aiter__(self) -> AsyncIterator[WebSocketMessage]:
        ...

    async def send(self, message: WebSocketMessage) -> None:
        ...


def to_transport_message(message: WsMessage) -> WebSocketMessage:
    if message.kind is WsMessageKind.CLOSE:
        return WebSocketMessage.close(message.code, message.reason)
    return WebSocketMessage.text(message.data)


class OnceInitializer:
    """Wrap an initializer so it runs at most once per session."""

    def __init__(self, initializer: Initializer):
        self._initializer = initializer
        self.called = False

    async def __call__(self, payload: Any) -> dict:
        if self.called:
            raise RuntimeError("The connection initializer already ran for this session")
        self.called = True
        data = self._initializer(payload)
        if inspect.isawaitable(data):
            data = await data
        return data if data is not None else {}


async def default_initializer(payload: Any) -> dict:
    return {}


async def inbound_messages(websocket: DuplexWebSocket) -> AsyncIterator[bytes]:
    """Yield the raw bytes of inbound text and binary frames until the transport fails."""
    iterator = websocket.__aiter__()
    while True:
        try:
            message = await iterator.__anext__()
        except StopAsyncIteration:
            return
        except Exception as exc:
            logger.debug("WebSocket transport error, closing inbound stream: %s", exc)
            return
        if message.is_data():
            yield message.into_bytes()


async def _aclose(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except RuntimeError as exc:
        # Still being consumed by a task the engine started.
        logger.debug("Could not close subscription stream: %s", exc)


async def graphql_subscription_with_data(
    websocket: DuplexWebSocket,
    schema: Any,
    protocol: WebSocketProtocols,
    initializer: Initializer,
    engine: SubscriptionEngine,
) -> None:
    """
    Run a subscription session, converting the init payload with ``initializer``.

    Returns when the engine's output ends. Transport and send errors end or
    degrade the session silently; they are never raised to the caller.
    """
    inbound = inbound_messages(websocket)
    outbound = engine(schema, inbound, OnceInitializer(initializer), protocol)
    try:
        async for message in outbound:
            try:
                await websocket.send(to_transport_message(message))
            except Exception as exc:
                logger.debug("Failed to send subscription message: %s", exc)
    finally:
        await _aclose(outbound)
        await _aclose(inbound)


async def graphql_subscription(
    websocket: DuplexWebSocket,
    schema: Any,
    protocol: WebSocketProtocols,
    engine: SubscriptionEngine,
) -> None:
    """Run a subscription session with empty context data."""
    await graphql_subscription_with_data(
        websocket, schema, protocol, default_initializer, engine
    )
