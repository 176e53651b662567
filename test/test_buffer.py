import threading
import time
from typing import List, Optional, Tuple

from statsdgram.buffer import FlushThread, MetricBuffer


class FakeTransport:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.payloads: List[str] = []
        self.error = error
        self.sent_event = threading.Event()

    def send_message(self, payload: str, callback=None) -> None:
        self.payloads.append(payload)
        self.sent_event.set()
        if callback is not None:
            if self.error is not None:
                callback(self.error, 0)
            else:
                callback(None, len(payload))


def test_lines_are_batched_until_max_size() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(8, fake.send_message)
    metric_buffer.enqueue("a:1|c")
    assert fake.payloads == []
    assert len(metric_buffer) == 6
    metric_buffer.enqueue("b:2|c")
    assert fake.payloads == ["a:1|c\nb:2|c\n"]
    assert len(metric_buffer) == 0


def test_flush_sends_pending_lines_in_order() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    for name in ("a", "b", "c"):
        metric_buffer.enqueue("{}:1|c".format(name))
    assert metric_buffer.flush() is True
    assert fake.payloads == ["a:1|c\nb:1|c\nc:1|c\n"]


def test_flush_of_empty_buffer_does_nothing() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    assert metric_buffer.flush() is False
    metric_buffer.enqueue("a:1|c")
    assert metric_buffer.flush() is True
    assert metric_buffer.flush() is False
    assert fake.payloads == ["a:1|c\n"]


def test_callbacks_are_told_about_their_own_line() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    results: List[Tuple[str, Optional[Exception], int]] = []
    metric_buffer.enqueue("a:1|c", lambda error, sent: results.append(("a", error, sent)))
    metric_buffer.enqueue("bb:22|c", lambda error, sent: results.append(("bb", error, sent)))
    assert results == []
    metric_buffer.flush()
    assert results == [("a", None, 6), ("bb", None, 8)]


def test_callbacks_get_send_errors() -> None:
    error = OSError("network is unreachable")
    fake = FakeTransport(error=error)
    metric_buffer = MetricBuffer(1, fake.send_message)
    results = []
    metric_buffer.enqueue("a:1|c", lambda error, sent: results.append((error, sent)))
    assert results == [(error, 0)]


def test_flush_thread_flushes_after_interval() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    started = time.monotonic()
    flush_thread = FlushThread(metric_buffer, 200)
    flush_thread.start()
    try:
        metric_buffer.enqueue("a:1|c")
        assert fake.payloads == []
        assert fake.sent_event.wait(5.0)
        assert time.monotonic() - started >= 0.19
        assert fake.payloads == ["a:1|c\n"]
    finally:
        flush_thread.stop()
        flush_thread.join(5.0)
    assert not flush_thread.is_alive()


def test_flush_thread_skips_empty_buffer() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    flush_thread = FlushThread(metric_buffer, 10)
    flush_thread.start()
    try:
        time.sleep(0.1)
    finally:
        flush_thread.stop()
        flush_thread.join(5.0)
    assert fake.payloads == []


def test_unencodable_line_is_kept_out_of_the_batch() -> None:
    fake = FakeTransport()
    metric_buffer = MetricBuffer(1000, fake.send_message)
    results = []
    metric_buffer.enqueue("a:1|c")
    metric_buffer.enqueue("bad\ud800:1|c", lambda error, sent: results.append((error, sent)))
    metric_buffer.enqueue("bad\ud800:1|c")
    assert len(results) == 1
    assert isinstance(results[0][0], UnicodeEncodeError)
    assert len(metric_buffer) == 6
    metric_buffer.flush()
    assert fake.payloads == ["a:1|c\n"]
