"""Tests for LiveChannel."""

import asyncio
import json
import logging

import pytest

from flowforge.core.errors import ChannelDisconnect
from flowforge.transport.live_channel import ChannelState, LiveChannel, parse_push_message


def frame(run_id="r1", type="run_update", **fields):
    return json.dumps({"runId": run_id, "type": type, **fields})


class FakeConnection:
    """Yields its frames, then either closes or stays open until released."""

    def __init__(self, frames=(), hold=False, error=None):
        self.frames = list(frames)
        self.hold = hold
        self.error = error
        self.closed = False
        self.release = asyncio.Event()

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for f in self.frames:
            yield f
        if self.error is not None:
            raise self.error
        if self.hold:
            await self.release.wait()

    async def close(self):
        self.closed = True


class FakeServer:
    """Connector handing out queued connections, then idle open ones."""

    def __init__(self, *connections, refuse=0):
        self.queue = list(connections)
        self.refuse = refuse
        self.attempts = 0
        self.handed_out = []

    async def connect(self):
        self.attempts += 1
        if self.refuse:
            self.refuse -= 1
            raise ChannelDisconnect("connection refused")
        conn = self.queue.pop(0) if self.queue else FakeConnection(hold=True)
        self.handed_out.append(conn)
        return conn


async def wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def received():
    return []


class TestParsePushMessage:
    """Tests for frame parsing."""

    def test_valid_frame(self):
        """runId maps to run_id; extra fields are kept."""
        msg = parse_push_message(frame("r9", "run_completed", status="completed", step=2))
        assert msg.run_id == "r9"
        assert msg.type == "run_completed"
        assert msg.status == "completed"

    @pytest.mark.parametrize("raw", ["not json", "[]", '{"type": "run_update"}'])
    def test_malformed(self, raw, caplog):
        """Undecodable or incomplete frames are logged and ignored."""
        with caplog.at_level(logging.WARNING):
            assert parse_push_message(raw) is None
        assert "malformed" in caplog.text


class TestDispatch:
    """Tests for filtering and delivery."""

    @pytest.mark.asyncio
    async def test_delivers_to_subscribers(self, received):
        """Accepted messages reach every handler, sync or async."""
        server = FakeServer(FakeConnection([frame("r1"), frame("r1", "run_completed")], hold=True))
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        async_received = []

        async def on_push_async(msg):
            async_received.append(msg.type)

        channel.subscribe(lambda msg: received.append(msg.type))
        channel.subscribe(on_push_async)
        channel.start()
        try:
            await wait_until(lambda: len(async_received) == 2)
        finally:
            await channel.stop()

        assert received == ["run_update", "run_completed"]
        assert async_received == ["run_update", "run_completed"]

    @pytest.mark.asyncio
    async def test_watch_filter_drops_unwatched(self, received):
        """Messages for other runs never reach handlers."""
        server = FakeServer(
            FakeConnection([frame("other"), frame("r1"), frame("other")], hold=True)
        )
        channel = LiveChannel(
            connector=server.connect,
            reconnect_delay=0.01,
            watch_filter=lambda msg: msg.run_id == "r1",
        )
        channel.subscribe(lambda msg: received.append(msg.run_id))
        channel.start()
        try:
            await wait_until(lambda: received)
            await asyncio.sleep(0.02)
        finally:
            await channel.stop()

        assert received == ["r1"]

    @pytest.mark.asyncio
    async def test_malformed_frames_skipped(self, received):
        """Garbage between valid frames is ignored."""
        server = FakeServer(FakeConnection(["{oops", frame("r1"), "null"], hold=True))
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.subscribe(lambda msg: received.append(msg.run_id))
        channel.start()
        try:
            await wait_until(lambda: received)
        finally:
            await channel.stop()

        assert received == ["r1"]
        assert channel.open_count == 1

    @pytest.mark.asyncio
    async def test_handler_error_logged_and_channel_continues(self, received, caplog):
        """A failing handler does not stop delivery or the connection."""
        server = FakeServer(FakeConnection([frame("r1"), frame("r2")], hold=True))
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)

        def broken(msg):
            raise RuntimeError("render failed")

        channel.subscribe(broken)
        channel.subscribe(lambda msg: received.append(msg.run_id))
        with caplog.at_level(logging.ERROR):
            channel.start()
            try:
                await wait_until(lambda: len(received) == 2)
            finally:
                await channel.stop()

        assert received == ["r1", "r2"]
        assert "Push handler failed" in caplog.text
        assert channel.open_count == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, received):
        """A removed handler gets nothing more."""
        server = FakeServer(FakeConnection([frame("r1")], hold=True))
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        unsubscribe = channel.subscribe(lambda msg: received.append(msg.run_id))
        unsubscribe()
        unsubscribe()

        channel.start()
        try:
            await wait_until(lambda: channel.state is ChannelState.OPEN)
            await asyncio.sleep(0.02)
        finally:
            await channel.stop()

        assert received == []


class TestReconnect:
    """Tests for the connection lifecycle."""

    @pytest.mark.asyncio
    async def test_reconnects_after_close(self):
        """Each close is followed by exactly one new connection."""
        server = FakeServer(FakeConnection(), FakeConnection(), FakeConnection(hold=True))
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        try:
            await wait_until(lambda: channel.open_count == 3)
        finally:
            await channel.stop()

        assert server.attempts == 3
        assert all(conn.closed for conn in server.handed_out)

    @pytest.mark.asyncio
    async def test_transport_error_reconnects(self):
        """A dropped connection is closed and replaced."""
        dropped = FakeConnection([frame("r1")], error=ChannelDisconnect("reset by peer"))
        server = FakeServer(dropped)
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        try:
            await wait_until(lambda: channel.open_count == 2)
        finally:
            await channel.stop()

        assert dropped.closed is True

    @pytest.mark.asyncio
    async def test_refused_connect_retries(self):
        """Failed connects are retried after the delay."""
        server = FakeServer(refuse=2)
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        try:
            await wait_until(lambda: channel.state is ChannelState.OPEN)
        finally:
            await channel.stop()

        assert server.attempts == 3
        assert channel.open_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_connect_error_retries(self, caplog):
        """An error other than a disconnect is logged and the loop keeps going."""
        server = FakeServer()
        calls = []

        async def flaky_connect():
            calls.append(1)
            if len(calls) == 1:
                raise OSError("network unreachable")
            return await server.connect()

        channel = LiveChannel(connector=flaky_connect, reconnect_delay=0.01)
        with caplog.at_level(logging.ERROR):
            channel.start()
            try:
                await wait_until(lambda: channel.state is ChannelState.OPEN)
                assert channel.running is True
            finally:
                await channel.stop()

        assert len(calls) == 2
        assert "network unreachable" in caplog.text

    @pytest.mark.asyncio
    async def test_unexpected_frame_error_reconnects(self):
        """A connection failing with any error is closed and replaced."""
        broken = FakeConnection([frame("r1")], error=RuntimeError("bad frame"))
        server = FakeServer(broken)
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        try:
            await wait_until(lambda: channel.open_count == 2)
        finally:
            await channel.stop()

        assert broken.closed is True

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_stop_channel(self, caplog):
        server = FakeServer(FakeConnection())
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)

        def broken(state):
            raise RuntimeError("redraw failed")

        channel.add_observer(broken)
        with caplog.at_level(logging.ERROR):
            channel.start()
            try:
                await wait_until(lambda: channel.open_count == 2)
            finally:
                await channel.stop()

        assert "observer failed" in caplog.text

    @pytest.mark.asyncio
    async def test_waits_reconnect_delay(self):
        """No new attempt happens before the delay elapses."""
        server = FakeServer(FakeConnection())
        channel = LiveChannel(connector=server.connect, reconnect_delay=10.0)
        channel.start()
        try:
            await wait_until(lambda: channel.state is ChannelState.CLOSED and server.attempts)
            await asyncio.sleep(0.05)
            assert server.attempts == 1
        finally:
            await channel.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        """A second start while running opens no extra connection."""
        server = FakeServer()
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        channel.start()
        try:
            await wait_until(lambda: channel.state is ChannelState.OPEN)
            await asyncio.sleep(0.02)
        finally:
            await channel.stop()

        assert server.attempts == 1


class TestStop:
    """Tests for stop and state observers."""

    @pytest.mark.asyncio
    async def test_stop_closes_and_cancels(self):
        """stop closes the open connection and nothing reconnects."""
        server = FakeServer()
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        await wait_until(lambda: channel.state is ChannelState.OPEN)

        await channel.stop()
        await asyncio.sleep(0.05)

        assert channel.state is ChannelState.STOPPED
        assert channel.running is False
        assert server.handed_out[0].closed is True
        assert server.attempts == 1

    @pytest.mark.asyncio
    async def test_stop_during_reconnect_delay(self):
        """A pending reconnect is cancelled."""
        server = FakeServer(FakeConnection())
        channel = LiveChannel(connector=server.connect, reconnect_delay=10.0)
        channel.start()
        await wait_until(lambda: channel.state is ChannelState.CLOSED and server.attempts)

        await channel.stop()

        assert channel.state is ChannelState.STOPPED
        assert server.attempts == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        """Stopping an idle channel is harmless."""
        channel = LiveChannel(connector=FakeServer().connect)
        await channel.stop()
        assert channel.state is ChannelState.STOPPED

    @pytest.mark.asyncio
    async def test_observers_see_transitions(self):
        """Observers get every state change in order."""
        server = FakeServer(FakeConnection())
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        states = []
        channel.add_observer(states.append)
        channel.start()
        try:
            await wait_until(lambda: channel.open_count == 2)
        finally:
            await channel.stop()

        assert states[:5] == [
            ChannelState.CONNECTING,
            ChannelState.OPEN,
            ChannelState.CLOSED,
            ChannelState.CONNECTING,
            ChannelState.OPEN,
        ]
        assert states[-1] is ChannelState.STOPPED

    @pytest.mark.asyncio
    async def test_restart_after_stop(self):
        """A stopped channel can be started again."""
        server = FakeServer()
        channel = LiveChannel(connector=server.connect, reconnect_delay=0.01)
        channel.start()
        await wait_until(lambda: channel.state is ChannelState.OPEN)
        await channel.stop()

        channel.start()
        try:
            await wait_until(lambda: channel.open_count == 2)
        finally:
            await channel.stop()
