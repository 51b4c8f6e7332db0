"""Tests for EventStream — the render output stream."""

from asyncstate import EventStream


class TestEmitSubscribe:
    def test_subscribe_receives_emitted_values(self):
        stream = EventStream()
        received = []
        stream.subscribe(lambda v: received.append(v))
        stream.emit(1)
        stream.emit(2)
        assert received == [1, 2]

    def test_unsubscribe(self):
        stream = EventStream()
        received = []
        unsub = stream.subscribe(lambda v: received.append(v))
        stream.emit(1)
        unsub()
        stream.emit(2)
        assert received == [1]

    def test_unsubscribe_idempotent(self):
        stream = EventStream()
        unsub = stream.subscribe(lambda v: None)
        unsub()
        unsub()  # should not raise

    def test_subscriber_may_unsubscribe_during_emit(self):
        stream = EventStream()
        received = []
        unsub = stream.subscribe(lambda v: unsub())
        stream.subscribe(lambda v: received.append(v))
        stream.emit(1)
        stream.emit(2)
        assert received == [1, 2]


class TestDispose:
    def test_emit_after_dispose_is_noop(self):
        stream = EventStream()
        received = []
        stream.subscribe(lambda v: received.append(v))
        stream.dispose()
        stream.emit(1)
        assert received == []
        assert stream.disposed

    def test_subscribe_after_dispose_never_fires(self):
        stream = EventStream()
        stream.dispose()
        received = []
        unsub = stream.subscribe(received.append)
        stream.emit(1)
        unsub()
        assert received == []
