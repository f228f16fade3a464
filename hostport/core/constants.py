"""Core constants for hostport address handling."""

# Valid TCP/UDP port bounds (0 lets the OS pick)
MIN_PORT = 0
MAX_PORT = 65535

# Wildcard bind addresses
IPV4_WILDCARD_ADDRESS = "0.0.0.0"
IPV6_WILDCARD_ADDRESS = "::"

DEFAULT_BIND_HOST = "127.0.0.1"
DEFAULT_PORT_RANGE = "50000-50050"
DEFAULT_BACKLOG = 64

__all__ = [
    "MIN_PORT",
    "MAX_PORT",
    "IPV4_WILDCARD_ADDRESS",
    "IPV6_WILDCARD_ADDRESS",
    "DEFAULT_BIND_HOST",
    "DEFAULT_PORT_RANGE",
    "DEFAULT_BACKLOG",
]
