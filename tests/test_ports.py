import errno
import socket
import sys
from contextlib import closing

import pytest

from hostport.utils.ports import (
    PortsExhaustedError,
    bind_port,
    create_server_from_ports,
    find_available_port,
    get_available_port,
    get_port_range_from_string,
)


def _lock_socket(sock: socket.socket) -> None:
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if hasattr(socket, "SO_EXCLUSIVEADDRUSE"):
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_EXCLUSIVEADDRUSE, 1)


def test_create_server_binds_within_range() -> None:
    ports = get_port_range_from_string("50000-50050")
    server = create_server_from_ports("127.0.0.1", ports, bind_port)
    with closing(server):
        port = server.getsockname()[1]
        assert 50000 <= port <= 50050


def test_create_server_skips_failing_factory_calls() -> None:
    def factory(address: str, port: int) -> socket.socket:
        if port < 50010:
            raise Exception("refused")
        return bind_port(address, port)

    ports = get_port_range_from_string("50000-50050")
    server = create_server_from_ports("127.0.0.1", ports, factory)
    with closing(server):
        port = server.getsockname()[1]
        assert 50010 <= port <= 50050


def test_create_server_returns_first_success_without_trying_the_rest() -> None:
    tried = []

    def factory(address: str, port: int) -> str:
        tried.append(port)
        if port == 3:
            return f"{address}:{port}"
        raise OSError(errno.EADDRINUSE, "busy")

    ports = get_port_range_from_string("1-10")
    assert create_server_from_ports("localhost", ports, factory) == "localhost:3"
    assert tried == [1, 2, 3]
    # single-pass iterator: the binder stopped right after port 3
    assert next(ports) == 4


def test_create_server_raises_when_every_port_fails() -> None:
    def factory(address: str, port: int) -> socket.socket:
        raise Exception("no")

    ports = get_port_range_from_string("50000-50050")
    with pytest.raises(PortsExhaustedError) as excinfo:
        create_server_from_ports("localhost", ports, factory)

    assert isinstance(excinfo.value, OSError)
    assert excinfo.value.errno == errno.EADDRINUSE
    assert excinfo.value.attempts == 51
    assert excinfo.value.address == "localhost"


def test_create_server_with_empty_sequence_is_exhausted() -> None:
    calls = []
    with pytest.raises(PortsExhaustedError) as excinfo:
        create_server_from_ports("localhost", [], lambda a, p: calls.append(p))
    assert excinfo.value.attempts == 0
    assert calls == []


def test_create_server_does_not_swallow_keyboard_interrupt() -> None:
    def factory(address: str, port: int) -> None:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        create_server_from_ports("localhost", [1, 2], factory)


def test_create_server_logs_attempts(caplog: pytest.LogCaptureFixture) -> None:
    def factory(address: str, port: int) -> None:
        raise OSError("busy")

    with caplog.at_level("DEBUG", logger="hostport.utils.ports"):
        with pytest.raises(PortsExhaustedError):
            create_server_from_ports("localhost", [7, 8], factory)

    messages = [record.getMessage() for record in caplog.records]
    assert any("port 7" in message for message in messages)
    assert any("No free port" in message for message in messages)


def test_find_available_port_within_range() -> None:
    port = find_available_port(start=25030, end=25040)
    assert 25030 <= port < 25040

    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        sock.bind(("127.0.0.1", port))
        sock.listen(1)


@pytest.mark.skipif(
    sys.platform.startswith("win32"),
    reason="Windows socket locking has compatibility issues with SO_EXCLUSIVEADDRUSE",
)
def test_find_available_port_raises_when_exhausted() -> None:
    occupied_sockets = []
    try:
        for port in range(25050, 25052):
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            _lock_socket(sock)
            sock.bind(("127.0.0.1", port))
            sock.listen(1)
            occupied_sockets.append(sock)

        with pytest.raises(PortsExhaustedError):
            find_available_port(start=25050, end=25052)
    finally:
        for sock in occupied_sockets:
            sock.close()


@pytest.mark.skipif(
    sys.platform.startswith("win32"), reason="Windows socket locking order differs"
)
def test_bind_port_raises_for_conflicting_port() -> None:
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        _lock_socket(sock)
        sock.bind(("127.0.0.1", 26000))
        sock.listen(1)

        with pytest.raises(OSError):
            bind_port("127.0.0.1", 26000)


def test_get_available_port_is_bindable() -> None:
    port = get_available_port()
    assert 0 < port <= 65535
    with closing(bind_port("127.0.0.1", port)) as sock:
        assert sock.getsockname()[1] == port


@pytest.mark.skipif(not socket.has_ipv6, reason="IPv6 not supported")
def test_bind_port_accepts_bracketed_ipv6() -> None:
    try:
        sock = bind_port("[::1]", 0)
    except OSError:
        pytest.skip("IPv6 loopback unavailable")
    with closing(sock):
        assert sock.family == socket.AF_INET6
