"""
GraphQL over WebSocket subscription bridge.
"""

from .bridge import (
    MessageType,
    WebSocketMessage,
    WsMessage,
    WsMessageKind,
    graphql_subscription,
    graphql_subscription_with_data,
)
from .protocol import WebSocketProtocols, negotiate_protocol

__all__ = [
    "MessageType",
    "WebSocketMessage",
    "WebSocketProtocols",
    "WsMessage",
    "WsMessageKind",
    "get_subscription_consumer",
    "GraphQLSubscriptionConsumer",
    "graphql_subscription",
    "graphql_subscription_with_data",
    "negotiate_protocol",
]


def __getattr__(name):
    # The consumer needs channels, which is an optional dependency.
    if name in ("GraphQLSubscriptionConsumer", "get_subscription_consumer"):
        from . import consumer

        return getattr(consumer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
