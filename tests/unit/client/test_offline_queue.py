# tests/unit/client/test_offline_queue.py
import asyncio
import pytest

from app.core.enums import SyncEventType
from app.client.offline_queue import OfflineQueue
from app.schemas.sync import SyncMessage


def event(n: int) -> SyncMessage:
    return SyncMessage(type=SyncEventType.RECORD_UPDATED, payload={"id": str(n)})


def ids(events):
    return [e.payload["id"] for e in events]


@pytest.mark.asyncio
async def test_flush_sends_in_fifo_order_and_empties_queue():
    queue = OfflineQueue()
    for n in range(5):
        queue.enqueue(event(n))
    sent = []

    async def send(e):
        sent.append(e)

    count = await queue.flush(send)

    assert count == 5
    assert ids(sent) == ["0", "1", "2", "3", "4"]
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_no_deduplication():
    queue = OfflineQueue()
    queue.enqueue(event(1))
    queue.enqueue(event(1))

    assert len(queue) == 2


@pytest.mark.asyncio
async def test_interrupted_flush_keeps_unsent_events_in_order():
    queue = OfflineQueue()
    for n in range(4):
        queue.enqueue(event(n))
    sent = []

    async def flaky_send(e):
        if len(sent) == 2:
            raise ConnectionResetError("dropped")
        sent.append(e)

    with pytest.raises(ConnectionResetError):
        await queue.flush(flaky_send)

    assert ids(sent) == ["0", "1"]
    assert ids(queue.pending()) == ["2", "3"]

    async def send(e):
        sent.append(e)

    await queue.flush(send)

    # Every event delivered exactly once across both flushes
    assert ids(sent) == ["0", "1", "2", "3"]
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_events_enqueued_during_flush_are_sent_after_backlog():
    queue = OfflineQueue()
    queue.enqueue(event(0))
    queue.enqueue(event(1))
    sent = []

    async def send(e):
        sent.append(e)
        if e.payload["id"] == "0":
            queue.enqueue(event(2))
        await asyncio.sleep(0)

    await queue.flush(send)

    assert ids(sent) == ["0", "1", "2"]
    assert not queue


@pytest.mark.asyncio
async def test_concurrent_flushes_do_not_duplicate():
    queue = OfflineQueue()
    for n in range(3):
        queue.enqueue(event(n))
    sent = []

    async def send(e):
        await asyncio.sleep(0)
        sent.append(e)

    await asyncio.gather(queue.flush(send), queue.flush(send))

    assert ids(sent) == ["0", "1", "2"]


def test_unbounded_by_default():
    queue = OfflineQueue()
    for n in range(1000):
        queue.enqueue(event(n))

    assert len(queue) == 1000


def test_bounded_queue_drops_oldest():
    queue = OfflineQueue(max_size=2)
    for n in range(3):
        queue.enqueue(event(n))

    assert ids(queue.pending()) == ["1", "2"]


@pytest.mark.asyncio
async def test_enqueue_into_full_queue_during_flush_loses_nothing():
    queue = OfflineQueue(max_size=2)
    queue.enqueue(event(0))
    queue.enqueue(event(1))
    sending = asyncio.Event()
    release = asyncio.Event()
    sent = []

    async def slow_send(e):
        if not sent:
            sending.set()
            await release.wait()
        sent.append(e)

    flush = asyncio.create_task(queue.flush(slow_send))
    await sending.wait()

    # Head is on the wire; only one event is waiting, so there is room
    queue.enqueue(event(2))
    release.set()
    await flush

    assert ids(sent) == ["0", "1", "2"]
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_overflow_during_flush_drops_oldest_waiting_not_in_flight():
    queue = OfflineQueue(max_size=2)
    for n in range(3):
        queue.enqueue(event(n))
    # Bounded before the flush starts: 0 was dropped
    assert ids(queue.pending()) == ["1", "2"]

    sending = asyncio.Event()
    release = asyncio.Event()
    sent = []

    async def slow_send(e):
        if not sent:
            sending.set()
            await release.wait()
        sent.append(e)

    flush = asyncio.create_task(queue.flush(slow_send))
    await sending.wait()

    queue.enqueue(event(3))
    queue.enqueue(event(4))
    # "1" is in flight; "2" is the oldest waiting event and gives way
    assert ids(queue.pending()) == ["1", "3", "4"]

    release.set()
    await flush

    assert ids(sent) == ["1", "3", "4"]
    assert not queue


@pytest.mark.asyncio
async def test_clear_during_flush_does_not_drop_later_events():
    queue = OfflineQueue()
    queue.enqueue(event(0))
    sent = []

    async def send(e):
        if e.payload["id"] == "0":
            queue.clear()
            queue.enqueue(event(1))
        sent.append(e)

    await queue.flush(send)

    assert ids(sent) == ["0", "1"]
