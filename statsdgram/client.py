"""
StatsD client

Sends counters, gauges, timings, histograms and sets over UDP, using the
datadog extension for sample rates and tags:

  http://docs.datadoghq.com/guides/dogstatsd/#datagram-format

Every verb takes one stat name or a list of them, and optionally a sample
rate, a list (or dict) of tags and a callback. The callback is called with
(error, sent_bytes) once per call, also for a list of names.

"""
import logging
from typing import Any, Mapping, Optional

from statsdgram.buffer import FlushThread, MetricBuffer
from statsdgram.config import format_tags, load_config
from statsdgram.errors import ClientClosedError, GlobalClientError
from statsdgram.fanout import resolve_optional_arguments, send_all
from statsdgram.instance import register_global_client
from statsdgram.protocol import MetricType, encode_metric, should_sample
from statsdgram.transport import UdpTransport, report_send_result

LOG = logging.getLogger(__name__)


class StatsClient:
    def __init__(self, config: Optional[Mapping[str, Any]] = None, **options: Any):
        self.config = load_config(config, **options)
        self.closed = False
        self.transport = None
        self.buffer = None
        self.flush_thread = None
        if not self.config.mock:
            self.transport = UdpTransport(
                self.config.host,
                self.config.port,
                cache_dns=self.config.cache_dns,
                socket_refresh_interval=self.config.socket_refresh_interval,
            )
        if self.transport is not None and self.config.buffering:
            self.buffer = MetricBuffer(self.config.max_buffer_size, self.transport.send_message)
            self.flush_thread = FlushThread(self.buffer, self.config.buffer_flush_interval)
            self.flush_thread.start()
        if self.config.globalize:
            try:
                register_global_client(self)
            except GlobalClientError:
                self.close()
                raise

    def __repr__(self):
        return "{}(host={!r}, port={!r}, mock={!r})".format(
            self.__class__.__name__, self.config.host, self.config.port, self.config.mock
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def mock(self):
        return self.config.mock

    def timing(self, stat, time, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, time, MetricType.timing, sample_rate, tags, callback)

    def increment(self, stat, value=None, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, 1 if value is None else value, MetricType.counter, sample_rate, tags, callback)

    def decrement(self, stat, value=None, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, -1 if value is None else -value, MetricType.counter, sample_rate, tags, callback)

    def gauge(self, stat, value, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, value, MetricType.gauge, sample_rate, tags, callback)

    def histogram(self, stat, value, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, value, MetricType.histogram, sample_rate, tags, callback)

    def set(self, stat, value, sample_rate=None, tags=None, callback=None):
        self.send_all(stat, value, MetricType.set, sample_rate, tags, callback)

    unique = set

    def send_all(self, stat, value, metric_type, sample_rate=None, tags=None, callback=None):
        sample_rate, tags, callback = resolve_optional_arguments(sample_rate, tags, callback)
        if self.closed:
            if callback is not None:
                callback(ClientClosedError("statsd client is closed"), 0)
            else:
                LOG.debug("Dropping metric %r, client is closed", stat)
            return
        if self.config.mock:
            if callback is not None:
                callback(None, 0)
            return
        send_all(
            self.send,
            stat,
            value,
            metric_type,
            sample_rate=sample_rate,
            tags=format_tags(tags),
            callback=callback,
        )

    def send(self, stat, value, metric_type, *, sample_rate=None, tags=None, callback=None):
        if self.transport is None or not should_sample(sample_rate):
            report_send_result(callback, None, 0)
            return
        line = encode_metric(
            stat,
            value,
            metric_type,
            sample_rate=sample_rate,
            tags=tags,
            global_tags=self.config.global_tags,
            prefix=self.config.prefix,
            suffix=self.config.suffix,
        )
        if self.buffer is not None:
            self.buffer.enqueue(line, callback)
        else:
            self.transport.send_message(line, callback)

    def flush(self):
        if self.buffer is not None:
            self.buffer.flush()

    def close(self):
        if self.closed:
            return
        self.closed = True
        if self.flush_thread is not None:
            self.flush_thread.stop()
        # metrics already accepted still go out before the socket is released
        self.flush()
        if self.transport is not None:
            self.transport.close()
