import asyncio
import threading

from modules.snapshot.adapters.http.notifications import NotificationBroker


def test_publish_from_worker_thread_reaches_subscriber() -> None:
    async def scenario() -> dict:
        broker = NotificationBroker()
        queue = broker.subscribe()
        worker = threading.Thread(
            target=broker.publish,
            args=("notifications/snapshot_created", {"snapshot_id": 1}),
        )
        worker.start()
        worker.join()
        message = await asyncio.wait_for(queue.get(), timeout=2)
        broker.unsubscribe(queue)
        assert broker.subscriber_count == 0
        return message

    message = asyncio.run(scenario())
    assert message == {
        "jsonrpc": "2.0",
        "method": "notifications/snapshot_created",
        "params": {"snapshot_id": 1},
    }


def test_full_queue_drops_oldest() -> None:
    async def scenario() -> list[int]:
        broker = NotificationBroker(max_queue_size=2)
        queue = broker.subscribe()
        for snapshot_id in range(3):
            broker.publish("notifications/snapshot_deleted", {"snapshot_id": snapshot_id})
        await asyncio.sleep(0)
        return [queue.get_nowait()["params"]["snapshot_id"] for _ in range(queue.qsize())]

    assert asyncio.run(scenario()) == [1, 2]


def test_publish_without_subscribers_is_noop() -> None:
    NotificationBroker().publish("notifications/snapshot_updated", {"snapshot_id": 1})
