import asyncio
import threading

from services import AlarmBroadcaster


def test_publish_from_another_thread_reaches_subscribers(store):
    alert = store.create({"symbol": "BTC", "targetPrice": 1, "condition": "above"})
    fired = store.mark_triggered(alert.id, 2.0)
    broadcaster = AlarmBroadcaster()

    async def scenario():
        queue = broadcaster.subscribe()
        worker = threading.Thread(target=broadcaster.publish_trigger, args=(fired,))
        worker.start()
        event = await asyncio.wait_for(queue.get(), timeout=5)
        worker.join()
        broadcaster.unsubscribe(queue)
        return event

    event = asyncio.run(scenario())

    assert event["type"] == "alarm"
    assert event["alert"]["id"] == alert.id
    assert event["alert"]["alarming"] is True
    assert broadcaster.subscriber_count == 0


def test_full_queue_drops_events(caplog):
    broadcaster = AlarmBroadcaster(queue_size=1)

    async def scenario():
        queue = broadcaster.subscribe()
        broadcaster.publish({"type": "alarm", "n": 1})
        broadcaster.publish({"type": "alarm", "n": 2})
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return queue

    queue = asyncio.run(scenario())

    assert queue.qsize() == 1
    assert queue.get_nowait()["n"] == 1
    assert "dropping event" in caplog.text


def test_publish_without_subscribers_is_noop():
    AlarmBroadcaster().publish({"type": "alarm"})
