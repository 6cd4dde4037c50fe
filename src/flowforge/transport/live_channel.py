"""Live push channel.

Keeps one WebSocket connection to the server open for run notifications.
The connection is owned by a supervised asyncio task:

    CONNECTING -> OPEN -> (frames...) -> CLOSED -> sleep -> CONNECTING ...

Whenever the connection closes, for any reason, the task waits a fixed
delay and connects again, forever, until stop() is called. Unexpected
errors from the connector or the connection are logged and treated as a
close. Only one connection attempt is ever in flight.

Frames are parsed into PushMessage objects and passed to subscribers only
when the watch filter accepts them. Anything else is dropped; there is no
buffering or replay.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import aiohttp
from pydantic import ValidationError

from flowforge.core.errors import ChannelDisconnect
from flowforge.core.models import PushMessage

if TYPE_CHECKING:
    from flowforge.transport.protocol import PushConnection

logger = logging.getLogger(__name__)

Connector = Callable[[], Awaitable["PushConnection"]]
PushHandler = Callable[[PushMessage], Any]
StateObserver = Callable[["ChannelState"], None]


class ChannelState(Enum):
    """Connection lifecycle of the push channel."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    STOPPED = "stopped"


def parse_push_message(frame: str) -> PushMessage | None:
    """Parse a raw frame, or return None (logged) if it is not a valid message."""
    try:
        return PushMessage.model_validate(json.loads(frame))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring malformed push frame: %s", e)
        return None


class WebSocketConnection:
    """PushConnection backed by an aiohttp WebSocket."""

    def __init__(self, session: aiohttp.ClientSession, ws: aiohttp.ClientWebSocketResponse):
        self._session = session
        self._ws = ws

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[str]:
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    yield msg.data
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise ChannelDisconnect(f"WebSocket error: {self._ws.exception()}")
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise ChannelDisconnect(f"WebSocket connection lost: {e}") from e

    async def close(self) -> None:
        try:
            await self._ws.close()
        finally:
            await self._session.close()


def websocket_connector(url: str, heartbeat: float | None = 30.0) -> Connector:
    """Connector that opens an aiohttp WebSocket to url."""

    async def connect() -> PushConnection:
        session = aiohttp.ClientSession()
        try:
            ws = await session.ws_connect(url, heartbeat=heartbeat)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            await session.close()
            raise ChannelDisconnect(f"Could not connect to {url}: {e}") from e
        return WebSocketConnection(session, ws)

    return connect


@dataclass
class LiveChannel:
    """Single push connection with fixed-delay, unbounded reconnect.

    Example:
        >>> channel = LiveChannel.for_url(
        ...     "ws://localhost:3000/ws",
        ...     watch_filter=lambda msg: msg.run_id == tracker.tracked_run_id,
        ... )
        >>> unsubscribe = channel.subscribe(on_push)
        >>> channel.start()
        >>> ...
        >>> await channel.stop()
    """

    connector: Connector
    reconnect_delay: float = 3.0

    # Decides whether a message is wanted right now; None accepts everything
    watch_filter: Callable[[PushMessage], bool] | None = None

    state: ChannelState = field(default=ChannelState.CLOSED, init=False)

    # Number of times the channel reached OPEN
    open_count: int = field(default=0, init=False)

    _handlers: list[PushHandler] = field(default_factory=list, init=False, repr=False)
    _observers: list[StateObserver] = field(default_factory=list, init=False, repr=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _stopping: bool = field(default=False, init=False, repr=False)

    @classmethod
    def for_url(
        cls,
        url: str,
        reconnect_delay: float = 3.0,
        watch_filter: Callable[[PushMessage], bool] | None = None,
    ) -> LiveChannel:
        return cls(
            connector=websocket_connector(url),
            reconnect_delay=reconnect_delay,
            watch_filter=watch_filter,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, handler: PushHandler) -> Callable[[], None]:
        """Register a handler for accepted messages.

        The handler may be a plain function or a coroutine function.

        Returns:
            A callable that removes the handler.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def add_observer(self, observer: StateObserver) -> Callable[[], None]:
        """Register a callback invoked on every state transition."""
        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    def start(self) -> None:
        """Start the supervised connection task if not already running."""
        if self.running:
            return
        self._stopping = False
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel any pending reconnect and close the active connection."""
        self._stopping = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._set_state(ChannelState.STOPPED)

    async def _run(self) -> None:
        while not self._stopping:
            try:
                await self._connect_once()
            except Exception:
                logger.exception("Live channel connection failed")
                self._set_state(ChannelState.CLOSED)
            if self._stopping:
                break
            logger.info("Live channel disconnected, reconnecting in %.1fs", self.reconnect_delay)
            await asyncio.sleep(self.reconnect_delay)

    async def _connect_once(self) -> None:
        """One connection attempt, from CONNECTING until CLOSED."""
        self._set_state(ChannelState.CONNECTING)
        try:
            connection = await self.connector()
        except ChannelDisconnect as e:
            logger.debug("Live channel connect failed: %s", e)
            self._set_state(ChannelState.CLOSED)
            return

        self.open_count += 1
        self._set_state(ChannelState.OPEN)
        try:
            async for frame in connection:
                await self._dispatch(frame)
        except ChannelDisconnect as e:
            logger.debug("Live channel dropped: %s", e)
        finally:
            await connection.close()
            self._set_state(ChannelState.CLOSED)

    async def _dispatch(self, frame: str) -> None:
        message = parse_push_message(frame)
        if message is None:
            return

        if self.watch_filter is not None and not self.watch_filter(message):
            logger.debug("Dropping %s for unwatched run %s", message.type, message.run_id)
            return

        for handler in list(self._handlers):
            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # Logged only; the channel keeps running
                logger.exception("Push handler failed for run %s", message.run_id)

    def _set_state(self, state: ChannelState) -> None:
        if state is self.state:
            return
        logger.debug("Live channel %s -> %s", self.state.value, state.value)
        self.state = state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.exception("Live channel observer failed on %s", state.value)
