"""
Unit tests for GraphQL WebSocket sub-protocol negotiation.
"""

import pytest

from graphql_transport.subscriptions import WebSocketProtocols, negotiate_protocol

pytestmark = pytest.mark.unit


def test_header_values():
    assert WebSocketProtocols.GRAPHQL_WS.sec_websocket_protocol == "graphql-transport-ws"
    assert WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS.sec_websocket_protocol == "graphql-ws"


def test_legacy_protocol_is_the_default():
    assert WebSocketProtocols.default() is WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS


@pytest.mark.parametrize(
    "value, expected",
    [
        ("graphql-ws", WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        ("graphql-transport-ws", WebSocketProtocols.GRAPHQL_WS),
        (" Graphql-Transport-WS ", WebSocketProtocols.GRAPHQL_WS),
    ],
)
def test_parse(value, expected):
    assert WebSocketProtocols.parse(value) is expected


@pytest.mark.parametrize("value", ["", "graphql", "mqtt"])
def test_parse_rejects_unknown_names(value):
    with pytest.raises(ValueError):
        WebSocketProtocols.parse(value)


@pytest.mark.parametrize(
    "offered, expected",
    [
        (None, WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        ("", WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        ([], WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        ("mqtt", WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        ("graphql-transport-ws", WebSocketProtocols.GRAPHQL_WS),
        (b"graphql-transport-ws", WebSocketProtocols.GRAPHQL_WS),
        ("mqtt, graphql-transport-ws", WebSocketProtocols.GRAPHQL_WS),
        ("graphql-ws, graphql-transport-ws", WebSocketProtocols.SUBSCRIPTIONS_TRANSPORT_WS),
        (["mqtt", "graphql-transport-ws"], WebSocketProtocols.GRAPHQL_WS),
    ],
)
def test_negotiate_protocol(offered, expected):
    assert negotiate_protocol(offered) is expected
