"""Input validators for the ftpclient package.

Provides validation functions for user inputs like host names,
ports, timeouts and permission modes.
"""

import re
from typing import Any, Optional, Tuple


# IPv4 address pattern
IPV4_PATTERN = re.compile(
    r'^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}'
    r'(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$'
)

# Hostname pattern (simplified)
HOSTNAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$'
)

# Highest permission value accepted by SITE CHMOD
MAX_PERMISSION_MODE = 0o777


def validate_host(host: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a host (IPv4 address or hostname).

    Args:
        host: Host string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not host or not host.strip():
        return False, "Host is required"

    host = host.strip()

    if IPV4_PATTERN.match(host) or HOSTNAME_PATTERN.match(host):
        return True, None

    return False, f"Invalid host: {host}. Must be a valid IP address or hostname."


def validate_port(port: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a port number.

    Args:
        port: Port number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(port, int):
        try:
            port = int(port)
        except (ValueError, TypeError):
            return False, "Port must be a number"

    if port < 1 or port > 65535:
        return False, f"Port must be between 1 and 65535, got {port}"

    return True, None


def validate_timeout(timeout: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a timeout value in seconds.

    Args:
        timeout: Timeout in seconds

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(timeout, (int, float)):
        try:
            timeout = float(timeout)
        except (ValueError, TypeError):
            return False, "Timeout must be a number"

    if timeout <= 0:
        return False, f"Timeout must be positive, got {timeout}"

    return True, None


def validate_permission_mode(mode: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate file permission bits for SITE CHMOD.

    Args:
        mode: Integer between 0 and 0o777

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(mode, bool) or not isinstance(mode, int):
        return False, f'Invalid permission "{mode!r}" was given.'

    if mode < 0 or mode > MAX_PERMISSION_MODE:
        return False, f'Invalid permission "{mode:o}" was given.'

    return True, None
