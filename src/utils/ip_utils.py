"""IP address utilities for upstream and sinkhole addresses."""

import ipaddress


def is_valid_ipv4(ip: str) -> bool:
    """Validate if string is a valid IPv4 address.

    Args:
        ip: IP address string to validate.

    Returns:
        bool: True if valid IPv4, False otherwise.

    Examples:
        >>> is_valid_ipv4("203.0.113.45")
        True
        >>> is_valid_ipv4("256.0.0.1")
        False
        >>> is_valid_ipv4("::1")
        False
    """
    try:
        addr = ipaddress.ip_address(ip)
        return isinstance(addr, ipaddress.IPv4Address)
    except ValueError:
        return False


def is_valid_ipv6(ip: str) -> bool:
    """Validate if string is a valid IPv6 address.

    IPv4-mapped forms such as "::ffff:146.112.61.104" count as IPv6.

    Examples:
        >>> is_valid_ipv6("::")
        True
        >>> is_valid_ipv6("1.2.3.4")
        False
    """
    try:
        addr = ipaddress.ip_address(ip)
        return isinstance(addr, ipaddress.IPv6Address)
    except ValueError:
        return False


def parse_nameserver(value: str, default_port: int = 53) -> tuple[str, int]:
    """Split an upstream nameserver string into address and port.

    Accepts "ip", "ipv4:port" and "[ipv6]:port".

    Args:
        value: Nameserver string such as "1.1.1.1" or "[::1]:5353".
        default_port: Port used when none is given.

    Returns:
        tuple[str, int]: (address, port)

    Raises:
        ValueError: If the address or port is invalid.

    Examples:
        >>> parse_nameserver("208.67.222.222")
        ('208.67.222.222', 53)
        >>> parse_nameserver("208.67.220.220:5353")
        ('208.67.220.220', 5353)
        >>> parse_nameserver("[2620:119:35::35]:53")
        ('2620:119:35::35', 53)
    """
    value = value.strip()
    host, port = value, default_port

    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep:
            raise ValueError(f"Invalid nameserver: {value}")
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"Invalid nameserver: {value}")
            port = int(rest[1:])
    elif value.count(":") == 1:
        host, port_str = value.split(":")
        port = int(port_str)

    if not (is_valid_ipv4(host) or is_valid_ipv6(host)):
        raise ValueError(f"Invalid nameserver address: {host}")
    if not 1 <= port <= 65535:
        raise ValueError(f"Invalid nameserver port: {port}")

    return host, port
