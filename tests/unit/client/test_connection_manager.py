# tests/unit/client/test_connection_manager.py
import asyncio
import pytest

from app.client.connection import ConnectionManager
from app.client.network import NetworkMonitor
from app.client.offline_queue import OfflineQueue
from app.core.enums import ConnectionState, SyncEventType
from app.schemas.sync import SyncMessage
from tests.mocks.fake_channel import FakeConnector, wait_for

URL = "ws://relay.test/ws"


def event(n) -> SyncMessage:
    return SyncMessage(type=SyncEventType.RECORD_UPDATED, payload={"id": str(n), "currentStock": n})


def sent_ids(channel):
    return [frame["payload"]["id"] for frame in channel.sent_events()]


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def network():
    return NetworkMonitor(online=True)


@pytest.fixture
async def manager(connector, network):
    mgr = ConnectionManager(
        URL,
        queue=OfflineQueue(),
        network=network,
        connector=connector,
        reconnect_delay=0.02,
        keepalive_interval=60,
    )
    yield mgr
    await mgr.close()


class TestConnect:
    @pytest.mark.asyncio
    async def test_start_connects_when_online(self, manager, connector):
        await manager.start()

        assert manager.state == ConnectionState.CONNECTED
        assert connector.calls == 1

    @pytest.mark.asyncio
    async def test_connect_is_noop_when_already_connected(self, manager, connector):
        await manager.start()
        await manager.connect()
        await manager.connect()

        assert connector.calls == 1

    @pytest.mark.asyncio
    async def test_start_offline_does_not_connect(self, manager, connector, network):
        await network.set_online(False)
        await manager.start()

        assert manager.state == ConnectionState.DISCONNECTED
        assert connector.calls == 0
        assert not manager.reconnect_pending

    @pytest.mark.asyncio
    async def test_failed_connect_retries_after_delay(self, network):
        connector = FakeConnector(fail_connects=1)
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=0.02)
        try:
            await mgr.start()
            assert mgr.state == ConnectionState.DISCONNECTED
            assert mgr.reconnect_pending

            await wait_for(lambda: mgr.is_connected)
            assert connector.calls == 2
        finally:
            await mgr.close()

    @pytest.mark.asyncio
    async def test_status_reports_state_and_backlog(self, manager, network):
        await network.set_online(False)
        await manager.start()
        await manager.send(event(1))

        assert manager.status() == {"state": "disconnected", "online": False, "pending": 1}


class TestSend:
    @pytest.mark.asyncio
    async def test_send_while_connected_goes_out_immediately(self, manager, connector):
        await manager.start()

        assert await manager.send(event(1)) is True
        assert sent_ids(connector.current) == ["1"]
        assert len(manager.queue) == 0

    @pytest.mark.asyncio
    async def test_send_while_disconnected_is_queued_then_flushed_in_order(
        self, manager, connector, network
    ):
        await network.set_online(False)
        await manager.start()

        for n in range(3):
            assert await manager.send(event(n)) is False
        assert len(manager.queue) == 3

        await network.set_online(True)

        assert manager.is_connected
        assert sent_ids(connector.current) == ["0", "1", "2"]
        assert len(manager.queue) == 0

    @pytest.mark.asyncio
    async def test_failed_send_is_queued_and_replayed_after_reconnect(self, network):
        connector = FakeConnector(fail_after=[0])
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=0.02)
        try:
            await mgr.start()
            assert await mgr.send(event(7)) is False
            assert mgr.state == ConnectionState.DISCONNECTED

            await wait_for(lambda: mgr.is_connected and not mgr.queue)
            assert sent_ids(connector.current) == ["7"]
        finally:
            await mgr.close()

    @pytest.mark.asyncio
    async def test_flush_interrupted_by_drop_resumes_without_duplicates(self, network):
        # First channel accepts one event then fails
        connector = FakeConnector(fail_after=[1])
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=0.02)
        try:
            await network.set_online(False)
            await mgr.start()
            for n in range(4):
                await mgr.send(event(n))

            await network.set_online(True)
            await wait_for(lambda: len(connector.channels) == 2 and mgr.is_connected and not mgr.queue)

            first, second = connector.channels
            assert sent_ids(first) == ["0"]
            assert sent_ids(second) == ["1", "2", "3"]
        finally:
            await mgr.close()


class TestReceive:
    @pytest.mark.asyncio
    async def test_every_event_reaches_every_subscriber(self, manager, connector):
        seen_a, seen_b = [], []
        manager.subscribe(seen_a.append)

        async def async_subscriber(message):
            seen_b.append(message)

        manager.subscribe(async_subscriber)
        await manager.start()

        connector.current.push(event(1).to_wire())
        connector.current.push(event(2).to_wire())
        await wait_for(lambda: len(seen_a) == 2 and len(seen_b) == 2)

        assert [m.payload["id"] for m in seen_a] == ["1", "2"]
        assert [m.payload["id"] for m in seen_b] == ["1", "2"]
        assert manager.last_message.payload["id"] == "2"

    @pytest.mark.asyncio
    async def test_pong_is_not_surfaced(self, manager, connector):
        seen = []
        manager.subscribe(seen.append)
        await manager.start()

        connector.current.push({"type": "pong"})
        connector.current.push(event(1).to_wire())
        await wait_for(lambda: len(seen) == 1)

        assert seen[0].type == SyncEventType.RECORD_UPDATED
        assert manager.last_message.type == SyncEventType.RECORD_UPDATED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["not json", '{"type": "no-such-event"}', "[1, 2]"])
    async def test_malformed_messages_are_ignored(self, manager, connector, raw):
        seen = []
        manager.subscribe(seen.append)
        await manager.start()

        connector.current.push(raw)
        connector.current.push(event(1).to_wire())
        await wait_for(lambda: len(seen) == 1)

        assert manager.is_connected

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self, manager, connector):
        seen = []

        def broken(message):
            raise RuntimeError("boom")

        manager.subscribe(broken)
        manager.subscribe(seen.append)
        await manager.start()

        connector.current.push(event(1).to_wire())
        await wait_for(lambda: len(seen) == 1)

    @pytest.mark.asyncio
    async def test_unsubscribe(self, manager, connector):
        seen = []
        unsubscribe = manager.subscribe(seen.append)
        unsubscribe()
        await manager.start()

        connector.current.push(event(1).to_wire())
        await wait_for(lambda: manager.last_message is not None)

        assert seen == []


class TestReconnect:
    @pytest.mark.asyncio
    async def test_server_drop_schedules_one_reconnect(self, network, connector):
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=0.2)
        try:
            await mgr.start()
            connector.current.drop()

            await wait_for(lambda: mgr.state == ConnectionState.DISCONNECTED)
            assert mgr.reconnect_pending

            await wait_for(lambda: mgr.is_connected)
            await asyncio.sleep(0.05)
            assert connector.calls == 2
        finally:
            await mgr.close()

    @pytest.mark.asyncio
    async def test_going_offline_forces_disconnected_and_queues(self, manager, connector, network):
        await manager.start()
        channel = connector.current

        await network.set_online(False)

        assert manager.state == ConnectionState.DISCONNECTED
        assert channel.closed
        assert not manager.reconnect_pending

        await manager.send(event(1))
        assert len(manager.queue) == 1
        assert channel.sent_events() == []

    @pytest.mark.asyncio
    async def test_coming_online_connects_immediately(self, network, connector):
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=60)
        try:
            await network.set_online(False)
            await mgr.start()

            await network.set_online(True)

            assert mgr.is_connected
            assert connector.calls == 1
        finally:
            await mgr.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent_and_stops_reconnects(self, network, connector):
        mgr = ConnectionManager(URL, network=network, connector=connector, reconnect_delay=0.05)
        await mgr.start()
        connector.current.drop()
        await wait_for(lambda: mgr.reconnect_pending)

        await mgr.close()
        await mgr.close()

        assert mgr.state == ConnectionState.DISCONNECTED
        assert not mgr.reconnect_pending
        await asyncio.sleep(0.1)
        assert connector.calls == 1


class TestKeepAlive:
    @pytest.mark.asyncio
    async def test_ping_sent_periodically(self, network, connector):
        mgr = ConnectionManager(URL, network=network, connector=connector, keepalive_interval=0.01)
        try:
            await mgr.start()
            await wait_for(lambda: any(f == {"type": "ping"} for f in connector.current.sent))
        finally:
            await mgr.close()

    @pytest.mark.asyncio
    async def test_no_ping_after_close(self, network, connector):
        mgr = ConnectionManager(URL, network=network, connector=connector, keepalive_interval=0.01)
        await mgr.start()
        channel = connector.current
        await mgr.close()
        count = len(channel.sent)

        await asyncio.sleep(0.05)

        assert len(channel.sent) == count
