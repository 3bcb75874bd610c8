from ambient_light.domain.models import Bounds
from ambient_light.domain.store import ReadingStore


def test_initial_value_is_min_bound():
    store = ReadingStore("s", Bounds(5.0, 100.0))
    assert store.get() == 5.0
    assert store.reading.source == "initial"


def test_set_then_get_exact():
    store = ReadingStore("s")
    store.set(1234.56, source="pull")
    assert store.get() == 1234.56
    assert store.reading.source == "pull"


def test_set_clamps_to_bounds():
    store = ReadingStore("s", Bounds(0.0, 1000.0))
    assert store.set(5000.0, source="notification") == 1000.0
    assert store.get() == 1000.0
    assert store.set(-3.0, source="mqtt") == 0.0
    assert store.get() == 0.0


def test_last_write_wins():
    store = ReadingStore("s")
    store.set(10.0, source="pull")
    store.set(77.0, source="notification")
    store.set(12.0, source="mqtt")
    assert store.get() == 12.0
    assert store.reading.source == "mqtt"


def test_listeners_notified_on_change_only():
    store = ReadingStore("s")
    seen = []
    store.subscribe(seen.append)

    store.set(10.0)
    store.set(10.0, source="schedule")
    store.set(11.0)

    assert [r.value for r in seen] == [10.0, 11.0]


def test_unsubscribe():
    store = ReadingStore("s")
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.set(1.0)
    unsubscribe()
    store.set(2.0)
    assert len(seen) == 1


def test_failing_listener_does_not_block_store():
    store = ReadingStore("s")
    seen = []

    def broken(_reading):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.set(3.0)

    assert store.get() == 3.0
    assert len(seen) == 1


def test_publish_skips_when_superseded():
    store = ReadingStore("s")
    pulled = store.write(10.0, source="pull")
    store.set(77.0, source="notification")

    assert not store.publish(10.0, "schedule", pulled)
    assert store.get() == 77.0


def test_publish_writes_when_current():
    store = ReadingStore("s")
    pulled = store.write(10.0, source="pull")

    assert store.publish(10.0, "schedule", pulled)
    assert store.reading.source == "schedule"
    assert not store.publish(10.0, "schedule", None)
