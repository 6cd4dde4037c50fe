"""Transport - communication with the FlowForge server.

Available transports:
    WorkflowAPIClient: REST API over aiohttp.
    LiveChannel: Push notifications over a reconnecting WebSocket.

Example:
    >>> from flowforge.transport import LiveChannel, WorkflowAPIClient
    >>>
    >>> async with WorkflowAPIClient("http://localhost:3000/api") as api:
    ...     run = await api.get_run("r1")
    >>>
    >>> channel = LiveChannel.for_url("ws://localhost:3000/ws")
    >>> channel.subscribe(print)
    >>> channel.start()
"""

from flowforge.transport.http import WorkflowAPIClient
from flowforge.transport.live_channel import (
    ChannelState,
    LiveChannel,
    WebSocketConnection,
    parse_push_message,
    websocket_connector,
)
from flowforge.transport.protocol import PushConnection, WorkflowAPI

__all__ = [
    # Protocols
    "WorkflowAPI",
    "PushConnection",
    # Implementations
    "WorkflowAPIClient",
    "LiveChannel",
    "ChannelState",
    "WebSocketConnection",
    "websocket_connector",
    "parse_push_message",
]
