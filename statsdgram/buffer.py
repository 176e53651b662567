"""
statsdgram - metric batching

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import logging
import threading
from typing import Callable, List, Optional, Tuple

from statsdgram.transport import SendCallback, report_send_result

LOG = logging.getLogger(__name__)


class MetricBuffer:
    """Collects newline terminated metric lines into a single payload

    The payload is handed to send_message once it reaches max_size bytes, or
    when flush() is called. Callbacks given to enqueue() are told about the
    outcome once their line has actually been sent.
    """
    def __init__(self, max_size: int, send_message: Callable[[str, Optional[SendCallback]], None]):
        self.max_size = max_size
        self.send_message = send_message
        self.lock = threading.Lock()
        self.flush_lock = threading.RLock()
        self.lines: List[str] = []
        self.size = 0
        self.waiting: List[Tuple[SendCallback, int]] = []

    def __len__(self):
        return self.size

    def enqueue(self, line: str, callback: Optional[SendCallback] = None) -> None:
        line += "\n"
        try:
            line_size = len(line.encode("utf-8"))
        except UnicodeError as ex:
            # keep the line out of the batch so it cannot spoil the rest of the payload
            report_send_result(callback, ex)
            return
        with self.lock:
            self.lines.append(line)
            self.size += line_size
            if callback is not None:
                self.waiting.append((callback, line_size))
            full = self.size >= self.max_size
        if full:
            self.flush()

    def flush(self) -> bool:
        # flush_lock keeps concurrent flushes from overtaking each other on the wire
        with self.flush_lock:
            with self.lock:
                if not self.lines:
                    return False
                payload = "".join(self.lines)
                waiting = list(self.waiting)
                self.lines.clear()
                self.waiting.clear()
                self.size = 0
            LOG.debug("Flushing %d buffered metric lines", payload.count("\n"))
            self.send_message(payload, self._notify_waiting(waiting) if waiting else None)
        return True

    @staticmethod
    def _notify_waiting(waiting: List[Tuple[SendCallback, int]]) -> SendCallback:
        def on_sent(error, sent_bytes=0):  # pylint: disable=unused-argument
            for callback, line_size in waiting:
                if error is not None:
                    callback(error, 0)
                else:
                    callback(None, line_size)

        return on_sent


class FlushThread(threading.Thread):
    """Flushes a MetricBuffer every interval milliseconds until stopped"""
    def __init__(self, metric_buffer: MetricBuffer, interval: int):
        super().__init__(name="statsdgram-flush", daemon=True)
        self.metric_buffer = metric_buffer
        self.interval = interval / 1000.0
        self.stop_event = threading.Event()

    def run(self):
        while not self.stop_event.wait(self.interval):
            try:
                self.metric_buffer.flush()
            except Exception as ex:  # pylint: disable=broad-except
                LOG.exception("Problem flushing metrics: %s: %s", ex.__class__.__name__, ex)

    def stop(self):
        self.stop_event.set()
