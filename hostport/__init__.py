"""URL-safe address formatting and port allocation helpers."""

from __future__ import annotations

from hostport.utils.address import (
    InvalidAddressError,
    get_hostname_from_fqdn,
    get_wildcard_ip_address,
    host_and_port_to_url_string,
    ip_address_and_port_to_url_string,
    ip_address_to_url_string,
    is_valid_client_port,
    is_valid_host_port,
    parse_host_port_address,
    socket_address_to_url_string,
    unresolved_host_and_port_to_normalized_string,
    unresolved_host_to_normalized_string,
)
from hostport.utils.ports import (
    PortRangeFormatError,
    PortsExhaustedError,
    bind_port,
    create_server_from_ports,
    find_available_port,
    get_available_port,
    get_port_range_from_string,
    port_range_size,
)

__all__ = [
    "InvalidAddressError",
    "PortRangeFormatError",
    "PortsExhaustedError",
    "bind_port",
    "create_server_from_ports",
    "find_available_port",
    "get_available_port",
    "get_hostname_from_fqdn",
    "get_port_range_from_string",
    "get_wildcard_ip_address",
    "host_and_port_to_url_string",
    "ip_address_and_port_to_url_string",
    "ip_address_to_url_string",
    "is_valid_client_port",
    "is_valid_host_port",
    "parse_host_port_address",
    "port_range_size",
    "socket_address_to_url_string",
    "unresolved_host_and_port_to_normalized_string",
    "unresolved_host_to_normalized_string",
]
