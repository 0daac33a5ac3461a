"""
GraphQL over WebSocket sub-protocols.

Two sub-protocols are supported, selected through the
``Sec-WebSocket-Protocol`` handshake header:

- ``graphql-ws``: the legacy subscriptions-transport-ws protocol, used when
  the header is missing or names no supported protocol.
- ``graphql-transport-ws``: the graphql-ws protocol.
"""

from __future__ import annotations

import enum
from typing import Iterable, Union

GRAPHQL_TRANSPORT_WS_PROTOCOL = "graphql-transport-ws"
GRAPHQL_WS_PROTOCOL = "graphql-ws"


class WebSocketProtocols(enum.Enum):
    """Supported GraphQL over WebSocket sub-protocols."""

    SUBSCRIPTIONS_TRANSPORT_WS = GRAPHQL_WS_PROTOCOL
    GRAPHQL_WS = GRAPHQL_TRANSPORT_WS_PROTOCOL

    @property
    def sec_websocket_protocol(self) -> str:
        return self.value

    @classmethod
    def default(cls) -> "WebSocketProtocols":
        return cls.SUBSCRIPTIONS_TRANSPORT_WS

    @classmethod
    def parse(cls, value: str) -> "WebSocketProtocols":
        """
        Parse a single sub-protocol name.

        Raises:
            ValueError: If the name is not a supported sub-protocol.
        """
        normalized = (value or "").strip().lower()
        for protocol in cls:
            if protocol.value == normalized:
                return protocol
        raise ValueError(f"Unsupported GraphQL WebSocket protocol: {value!r}")


def negotiate_protocol(
    offered: Union[None, str, bytes, Iterable[Union[str, bytes]]],
) -> WebSocketProtocols:
    """
    Select the sub-protocol from the client's offer.

    ``offered`` is either the raw ``Sec-WebSocket-Protocol`` header value
    (comma separated) or the list of sub-protocols from an ASGI scope. The
    first supported entry wins; without one the legacy protocol is used.
    """
    for candidate in _iter_offered(offered):
        try:
            return WebSocketProtocols.parse(candidate)
        except ValueError:
            continue
    return WebSocketProtocols.default()


def _iter_offered(offered) -> Iterable[str]:
    if offered is None:
        return []
    if isinstance(offered, (str, bytes)):
        offered = [offered]
    names: list[str] = []
    for item in offered:
        if isinstance(item, bytes):
            item = item.decode("latin-1")
        if not isinstance(item, str):
            continue
        names.extend(part.strip() for part in item.split(",") if part.strip())
    return names
