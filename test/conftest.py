"""
statsdgram: fixtures for tests

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import selectors
import socket
import threading
from types import TracebackType
from typing import Callable, Iterator, List, Optional, Tuple, Type

import pytest

from statsdgram import clear_global_client, logutil, transport

logutil.configure_logging()


def port_is_listening(hostname: str, port: int, timeout: float = 0.5) -> bool:
    try:
        connection = socket.create_connection((hostname, port), timeout)
        connection.close()
        return True
    except socket.error:
        return False


@pytest.fixture(scope="session", name="get_available_port")
def fixture_get_available_port() -> Callable[[], int]:
    first_free_port = 30000

    def get_available_port():
        nonlocal first_free_port
        port = first_free_port
        while port < 40000:
            if not port_is_listening("localhost", port):
                first_free_port = port + 1
                return port
            port += 1
        raise RuntimeError("No available port")

    return get_available_port


class UdpServer:
    def __init__(self, port: int) -> None:
        self.host = "127.0.0.1"
        self.port = port
        self.socket = socket.socket(family=socket.AF_INET, type=socket.SOCK_DGRAM)

    def __enter__(self) -> "UdpServer":
        self.socket.bind((self.host, self.port))
        return self

    def __exit__(self, exc_type: Type, exc_val: BaseException, exc_tb: TracebackType) -> None:
        self.socket.close()

    def has_message(self, timeout: float = -1) -> bool:
        selector = selectors.DefaultSelector()
        selector.register(self.socket, selectors.EVENT_READ)
        try:
            return len(selector.select(timeout=timeout)) > 0
        finally:
            selector.unregister(self.socket)

    def receive(self, timeout: float = 5.0) -> Tuple[str, Tuple[str, int]]:
        self.socket.settimeout(timeout)
        data, sender = self.socket.recvfrom(65535)
        return data.decode(), sender

    def get_message(self, timeout: float = 5.0) -> str:
        return self.receive(timeout)[0]


@pytest.fixture(name="udp_server")
def fixture_udp_server(get_available_port: Callable[[], int]) -> Iterator[UdpServer]:
    with UdpServer(port=get_available_port()) as udp_server:
        yield udp_server


class FakeSocket:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.sent: List[Tuple[bytes, Tuple[str, int]]] = []
        self.closed = False

    def sendto(self, data: bytes, address: Tuple[str, int]) -> int:
        if self.error is not None:
            raise self.error
        self.sent.append((data, address))
        return len(data)

    def close(self) -> None:
        self.closed = True


@pytest.fixture(name="fake_sockets")
def fixture_fake_sockets(monkeypatch) -> List[FakeSocket]:
    sockets: List[FakeSocket] = []

    def create_udp_socket() -> FakeSocket:
        sock = FakeSocket()
        sockets.append(sock)
        return sock

    monkeypatch.setattr(transport, "create_udp_socket", create_udp_socket)
    return sockets


def wait_for_dns_lookups(timeout: float = 5.0) -> None:
    for thread in threading.enumerate():
        if thread.name == "statsdgram-dns":
            thread.join(timeout)


@pytest.fixture(name="global_client_cleanup", autouse=True)
def fixture_global_client_cleanup() -> Iterator[None]:
    yield
    clear_global_client()
