"""Port range parsing and bind-with-retry helpers."""

from __future__ import annotations

import errno
import logging
import re
import socket
from contextlib import closing
from typing import Callable, Iterable, Iterator, List, Tuple, TypeVar

from hostport.core.constants import DEFAULT_BACKLOG, DEFAULT_BIND_HOST, MAX_PORT
from hostport.utils.address import InvalidAddressError, to_ip_address

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bind capability: (address, port) -> listener, raising on failure
ServerFactory = Callable[[str, int], T]

_RANGE_TOKEN = re.compile(r"\s*([0-9]{1,5})\s*(?:-\s*([0-9]{1,5})\s*)?")


class PortRangeFormatError(ValueError):
    """Raised when a port range specification cannot be parsed."""


class PortsExhaustedError(OSError):
    """Raised when no port in the candidate sequence could be bound."""

    def __init__(self, address: str, attempts: int) -> None:
        super().__init__(
            errno.EADDRINUSE,
            f"Unable to allocate a socket on {address}: "
            f"all {attempts} candidate ports failed",
        )
        self.address = address
        self.attempts = attempts


def _parse_tokens(text: str) -> List[Tuple[int, int]]:
    if text is None:
        raise PortRangeFormatError("Port range must not be None")

    ranges: List[Tuple[int, int]] = []
    for token in text.split(","):
        match = _RANGE_TOKEN.fullmatch(token)
        if match is None:
            raise PortRangeFormatError(
                f"Invalid port range token {token.strip()!r} in {text!r}"
            )
        low = int(match.group(1))
        high = int(match.group(2)) if match.group(2) is not None else low
        if low > high:
            raise PortRangeFormatError(f"Port range {low}-{high} is descending")
        if high > MAX_PORT:
            raise PortRangeFormatError(f"Port {high} exceeds {MAX_PORT}")
        ranges.append((low, high))
    return ranges


def _iter_ranges(ranges: List[Tuple[int, int]]) -> Iterator[int]:
    for low, high in ranges:
        yield from range(low, high + 1)


def get_port_range_from_string(text: str) -> Iterator[int]:
    """Parse a port range specification such as ``"50000-50050, 50100,51234"``.

    The whole string is validated up front so a malformed specification
    fails before any port is handed out. The returned iterator is lazy and
    single-pass: ports come out in the order the tokens are written, each
    range ascending. Duplicates from overlapping tokens are not removed.

    Raises:
        PortRangeFormatError: if any token is not ``<int>`` or ``<int>-<int>``
            within 0-65535.
    """
    return _iter_ranges(_parse_tokens(text))


def port_range_size(text: str) -> int:
    """Number of positions the specification expands to."""
    return sum(high - low + 1 for low, high in _parse_tokens(text))


def create_server_from_ports(
    address: str, ports: Iterable[int], factory: ServerFactory[T]
) -> T:
    """Return the first listener ``factory`` manages to create.

    Ports are tried in iteration order. Any exception raised by ``factory``
    counts as a failed attempt and the scan moves on to the next port.

    Raises:
        PortsExhaustedError: if every candidate port failed.
    """
    attempts = 0
    for port in ports:
        attempts += 1
        logger.debug("Trying to open socket on %s port %d", address, port)
        try:
            return factory(address, port)
        except Exception as exc:
            logger.debug("Unable to allocate socket on port %d: %s", port, exc)

    logger.warning(
        "No free port on %s after %d attempt(s)", address, attempts
    )
    raise PortsExhaustedError(address, attempts)


def _socket_family(host: str) -> int:
    try:
        ip = to_ip_address(host)
    except InvalidAddressError:
        return socket.AF_INET
    return socket.AF_INET6 if ip.version == 6 else socket.AF_INET


def bind_port(host: str, port: int, backlog: int = DEFAULT_BACKLOG) -> socket.socket:
    """Bind to the supplied host/port and return the listening socket."""
    host = host.strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    family = _socket_family(host)
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.setblocking(False)
    try:
        if family == socket.AF_INET6:
            sock.bind((host, port, 0, 0))
        else:
            sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock


def find_available_port(
    start: int = 20000, end: int = 30000, host: str = DEFAULT_BIND_HOST
) -> int:
    """Return the first bindable port in ``[start, end)``; the probe socket is closed."""
    listener = create_server_from_ports(host, range(start, end), bind_port)
    with closing(listener) as sock:
        return sock.getsockname()[1]


def get_available_port(host: str = DEFAULT_BIND_HOST) -> int:
    """Ask the OS for an ephemeral port that is free right now."""
    with closing(bind_port(host, 0)) as sock:
        return sock.getsockname()[1]


__all__ = [
    "ServerFactory",
    "PortRangeFormatError",
    "PortsExhaustedError",
    "get_port_range_from_string",
    "port_range_size",
    "create_server_from_ports",
    "bind_port",
    "find_available_port",
    "get_available_port",
]
