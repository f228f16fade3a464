"""Canonical, URL-safe text forms for IP addresses, hosts and ports."""

from __future__ import annotations

import ipaddress
import re
import socket
from typing import Sequence, Tuple, Union

from hostport.config import get_config
from hostport.core.constants import (
    IPV4_WILDCARD_ADDRESS,
    IPV6_WILDCARD_ADDRESS,
    MAX_PORT,
    MIN_PORT,
)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
AddressLike = Union[IPAddress, bytes, bytearray, str]

_HOSTNAME_LABEL = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?")
_HEX_GROUP = re.compile(r"[0-9A-Fa-f]+")
_PORT_DIGITS = re.compile(r"[0-9]{1,5}")
_MAX_HOSTNAME_LENGTH = 253


class InvalidAddressError(ValueError):
    """Raised for malformed hostnames, address literals and out-of-range ports."""


def is_valid_client_port(port: int) -> bool:
    """Ports a client may connect to (1-65535)."""
    return _is_int(port) and 1 <= port <= MAX_PORT


def is_valid_host_port(port: int) -> bool:
    """Ports a server may bind to; 0 asks the OS for an ephemeral port."""
    return _is_int(port) and MIN_PORT <= port <= MAX_PORT


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_port(port: int) -> None:
    if not is_valid_host_port(port):
        raise InvalidAddressError(f"Port is not within the valid range: {port!r}")


def _strip_group_zeros(text: str) -> str:
    # "01db8" is five characters but still a 16-bit group
    address, sep, scope = text.partition("%")
    groups = []
    for group in address.split(":"):
        if len(group) > 4 and _HEX_GROUP.fullmatch(group):
            group = group.lstrip("0") or "0"
        groups.append(group)
    return ":".join(groups) + sep + scope


def _parse_ipv6(text: str) -> ipaddress.IPv6Address | None:
    if ":" not in text:
        return None
    try:
        return ipaddress.IPv6Address(_strip_group_zeros(text))
    except ValueError:
        return None


def _parse_ipv4(text: str) -> ipaddress.IPv4Address | None:
    try:
        return ipaddress.IPv4Address(text)
    except ValueError:
        return None


def _unbracket(text: str) -> str:
    if text.startswith("[") and text.endswith("]"):
        return text[1:-1]
    return text


def _ipv6_text(ip: ipaddress.IPv6Address) -> str:
    # RFC 5952 section 5: mapped addresses keep the dotted IPv4 tail
    if ip.ipv4_mapped is not None:
        return f"::ffff:{ip.ipv4_mapped}"
    return ip.compressed


def to_ip_address(address: AddressLike) -> IPAddress:
    """Coerce an address object, packed bytes or IP literal to an ``ipaddress`` value."""
    if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return address
    if isinstance(address, (bytes, bytearray)):
        if len(address) not in (4, 16):
            raise InvalidAddressError(
                f"Packed address must be 4 or 16 bytes, got {len(address)}"
            )
        return ipaddress.ip_address(bytes(address))
    if isinstance(address, str):
        stripped = address.strip()
        text = _unbracket(stripped)
        ipv6 = _parse_ipv6(text)
        if ipv6 is not None:
            return ipv6
        if text != stripped:
            raise InvalidAddressError(
                f"Brackets are only allowed around IPv6: {address!r}"
            )
        ipv4 = _parse_ipv4(text)
        if ipv4 is not None:
            return ipv4
        raise InvalidAddressError(f"Not an IP address literal: {address!r}")
    raise InvalidAddressError(f"Unsupported address type: {type(address).__name__}")


def ip_address_to_url_string(address: AddressLike) -> str:
    """Return the address in a form that can be embedded in a URL.

    IPv4 addresses come back in dotted-decimal form. IPv6 addresses are
    compressed per RFC 5952 and wrapped in square brackets, for example
    ``[2001:db8::ff00:42:8329]``.
    """
    ip = to_ip_address(address)
    if ip.version == 6:
        return f"[{_ipv6_text(ip)}]"
    return str(ip)


def ip_address_and_port_to_url_string(address: AddressLike, port: int) -> str:
    return f"{ip_address_to_url_string(address)}:{port}"


def socket_address_to_url_string(socket_address: Sequence) -> str:
    """Format a socket address tuple such as the result of ``getsockname()``."""
    host, port = socket_address[0], socket_address[1]
    return ip_address_and_port_to_url_string(host, port)


def host_and_port_to_url_string(host: str, port: int) -> str:
    """Resolve ``host`` and format the first address it maps to.

    Raises:
        socket.gaierror: if the host cannot be resolved.
    """
    infos = socket.getaddrinfo(
        _unbracket(host.strip()), None, proto=socket.IPPROTO_TCP
    )
    return ip_address_and_port_to_url_string(infos[0][4][0], port)


def is_valid_hostname(host: str) -> bool:
    """Strict RFC 1123 hostname check (no trailing dot, no numeric TLD)."""
    if not host or len(host) > _MAX_HOSTNAME_LENGTH or host.endswith("."):
        return False
    labels = host.split(".")
    if not all(_HOSTNAME_LABEL.fullmatch(label) for label in labels):
        return False
    # an all-numeric last label would be a malformed IPv4 literal
    return not labels[-1].isdigit()


def unresolved_host_to_normalized_string(host: str) -> str:
    """Normalize a host without resolving it.

    IPv6 literals are compressed and bracketed, IPv4 literals are returned
    as-is and hostnames are validated and lower-cased.

    Raises:
        InvalidAddressError: if the host is neither an IP literal nor a
            syntactically valid hostname.
    """
    if host is None:
        raise InvalidAddressError("Host must not be None")
    text = host.strip()
    if not text:
        raise InvalidAddressError("Host must not be empty")

    candidate = _unbracket(text)
    ipv6 = _parse_ipv6(candidate)
    if ipv6 is not None:
        return f"[{_ipv6_text(ipv6)}]"
    if candidate != text:
        raise InvalidAddressError(f"Brackets are only allowed around IPv6: {host!r}")

    ipv4 = _parse_ipv4(text)
    if ipv4 is not None:
        return str(ipv4)

    if not is_valid_hostname(text):
        raise InvalidAddressError(f"Invalid hostname: {host!r}")
    return text.lower()


def unresolved_host_and_port_to_normalized_string(host: str, port: int) -> str:
    """Return ``host:port`` (or ``[host]:port`` for IPv6) in canonical form."""
    _check_port(port)
    return f"{unresolved_host_to_normalized_string(host)}:{port}"


def parse_host_port_address(value: str) -> Tuple[str, int]:
    """Split ``host:port`` or ``[v6]:port`` into a normalized host and a port.

    The returned host carries no brackets so it can go straight to
    ``socket.bind``.
    """
    text = value.strip()
    host, sep, port_text = text.rpartition(":")
    if not sep or not host:
        raise InvalidAddressError(f"Expected host:port, got {value!r}")
    if ":" in host and not (host.startswith("[") and host.endswith("]")):
        raise InvalidAddressError(f"IPv6 addresses must be bracketed: {value!r}")
    if not _PORT_DIGITS.fullmatch(port_text):
        raise InvalidAddressError(f"Invalid port in {value!r}")
    port = int(port_text)
    _check_port(port)
    return _unbracket(unresolved_host_to_normalized_string(host)), port


def get_hostname_from_fqdn(fqdn: str) -> str:
    """Return the first label of a fully qualified domain name."""
    if not fqdn:
        raise InvalidAddressError("fqdn must not be empty")
    return fqdn.split(".", 1)[0]


def get_wildcard_ip_address(prefer_ipv6: bool | None = None) -> str:
    """Address that binds on every interface."""
    if prefer_ipv6 is None:
        prefer_ipv6 = get_config().network.prefer_ipv6
    return IPV6_WILDCARD_ADDRESS if prefer_ipv6 else IPV4_WILDCARD_ADDRESS


__all__ = [
    "InvalidAddressError",
    "to_ip_address",
    "ip_address_to_url_string",
    "ip_address_and_port_to_url_string",
    "socket_address_to_url_string",
    "host_and_port_to_url_string",
    "is_valid_hostname",
    "unresolved_host_to_normalized_string",
    "unresolved_host_and_port_to_normalized_string",
    "parse_host_port_address",
    "is_valid_client_port",
    "is_valid_host_port",
    "get_hostname_from_fqdn",
    "get_wildcard_ip_address",
]
