"""
statsdgram - UDP transport

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import logging
import socket
import threading
import time
from typing import Callable, Dict, Optional, Union

from statsdgram.config import DEFAULT_SOCKET_REFRESH_INTERVAL
from statsdgram.errors import ClientClosedError

# Where metrics go until a lookup of a cached host succeeds, so a failing
# name resolution never stops the client from sending
DEFAULT_ADDRESS = "127.0.0.1"

LOG = logging.getLogger(__name__)

SendCallback = Callable[[Optional[Exception], int], None]


def create_udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM)


def lookup_address(host: str) -> str:
    addresses = socket.getaddrinfo(host, None, socket.AF_INET, socket.SOCK_DGRAM)
    return addresses[0][4][0]


def report_send_result(callback: Optional[SendCallback], error: Optional[Exception], sent_bytes: int = 0) -> None:
    if callback is not None:
        callback(error, sent_bytes)
    elif error is not None:
        LOG.warning("Sending metrics failed: %s: %s", error.__class__.__name__, error)


class UdpTransport:
    """Owns the outbound socket and the cached collector address

    The socket is replaced by a fresh one once it is older than
    socket_refresh_interval. The replaced socket is closed only after
    another socket_refresh_interval has passed, so datagrams handed to it
    just before the swap are not cut off. With cache_dns the collector host
    is re-resolved on every swap in a background thread; whichever lookup
    completes last decides the cached address.
    """
    def __init__(
        self,
        host: str,
        port: int,
        *,
        cache_dns: bool = False,
        socket_refresh_interval: int = DEFAULT_SOCKET_REFRESH_INTERVAL,
    ):
        self.host = host
        self.port = port
        self.cache_dns = cache_dns
        self.socket_refresh_interval = socket_refresh_interval / 1000.0
        self.lock = threading.Lock()
        self.socket = create_udp_socket()
        self.socket_created_at = time.monotonic()
        self.resolved_address = DEFAULT_ADDRESS
        self.dns_refreshed_at: Optional[float] = None
        self.closed = False
        self._retired_sockets: Dict[socket.socket, threading.Timer] = {}
        if self.cache_dns:
            self.refresh_dns()

    @property
    def destination(self):
        return (self.resolved_address if self.cache_dns else self.host, self.port)

    def send_message(self, payload: Union[str, bytes], callback: Optional[SendCallback] = None) -> None:
        if isinstance(payload, str):
            try:
                payload = payload.encode("utf-8")
            except UnicodeError as ex:
                report_send_result(callback, ex)
                return

        refresh_dns = False
        with self.lock:
            if self.closed:
                report_send_result(callback, ClientClosedError("transport is closed"))
                return
            now = time.monotonic()
            if now - self.socket_created_at >= self.socket_refresh_interval:
                self._refresh_socket(now)
                refresh_dns = self.cache_dns
            sock = self.socket
            destination = self.destination

        if refresh_dns:
            self.refresh_dns()

        try:
            sent_bytes = sock.sendto(payload, destination)
        except (OSError, UnicodeError) as ex:
            report_send_result(callback, ex)
            return
        report_send_result(callback, None, sent_bytes)

    def _refresh_socket(self, now: float) -> None:
        # called with self.lock held
        old_socket = self.socket
        self.socket = create_udp_socket()
        self.socket_created_at = now
        timer = threading.Timer(self.socket_refresh_interval, self._close_retired_socket, args=(old_socket, ))
        timer.daemon = True
        self._retired_sockets[old_socket] = timer
        timer.start()
        LOG.debug("Replaced statsd socket, closing the old one in %.3fs", self.socket_refresh_interval)

    def _close_retired_socket(self, old_socket: socket.socket) -> None:
        with self.lock:
            self._retired_sockets.pop(old_socket, None)
        old_socket.close()

    def refresh_dns(self) -> threading.Thread:
        """Start resolving the collector host in the background"""
        self.dns_refreshed_at = time.monotonic()
        thread = threading.Thread(target=self._resolve, args=(self.host, ), name="statsdgram-dns", daemon=True)
        thread.start()
        return thread

    def _resolve(self, host: str) -> None:
        try:
            address = lookup_address(host)
        except (OSError, UnicodeError) as ex:
            LOG.debug("Resolving %r failed, still sending to %r: %s", host, self.resolved_address, ex)
            return
        self.apply_resolution(address)

    def apply_resolution(self, address: str) -> None:
        with self.lock:
            self.resolved_address = address
        LOG.debug("Resolved statsd host %r to %r", self.host, address)

    def close(self) -> None:
        with self.lock:
            if self.closed:
                return
            self.closed = True
            retired = self._retired_sockets
            self._retired_sockets = {}
            sock = self.socket
        for old_socket, timer in retired.items():
            timer.cancel()
            old_socket.close()
        sock.close()
