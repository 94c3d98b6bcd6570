"""Passive mode (PASV) data connection negotiation."""

import logging
import re
from typing import Callable, Optional, Tuple

from ftpclient.ftp.response import Reply
from ftpclient.ftp.transport import Transport, TransportFactory

logger = logging.getLogger("ftpclient.passive")

# (h1,h2,h3,h4,p1,p2) as sent in a 227 reply
PASV_PATTERN = re.compile(
    r"\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,"
    r"\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)"
)

PASV_OK = 227


def parse_pasv_reply(message: str) -> Optional[Tuple[str, int]]:
    """
    Extract the data endpoint from a PASV reply message.

    Args:
        message: Reply text, e.g. "227 Entering Passive Mode (10,0,0,5,195,80)."

    Returns:
        (host, port) tuple, or None if the message does not carry
        a valid address
    """
    match = PASV_PATTERN.search(message)
    if not match:
        return None

    numbers = [int(group) for group in match.groups()]
    if any(n > 255 for n in numbers):
        return None

    host = ".".join(str(n) for n in numbers[:4])
    # p1 is the high-order byte
    port = numbers[4] * 256 + numbers[5]
    return host, port


class PassiveDataNegotiator:
    """Opens the data connection for one transfer via PASV."""

    def __init__(
        self,
        request: Callable[[str], Reply],
        transport_factory: TransportFactory,
        timeout: float
    ):
        """
        Initialize the negotiator.

        Args:
            request: Sends a command on the control channel, returns the reply
            transport_factory: Opens a transport to (host, port, timeout)
            timeout: Read/write timeout for the data connection
        """
        self._request = request
        self._transport_factory = transport_factory
        self._timeout = timeout

    def open(self) -> Optional[Transport]:
        """
        Negotiate and open a passive data connection.

        Returns:
            Open transport, or None if the server refused PASV, the reply
            could not be parsed or the endpoint could not be reached

        Raises:
            FTPTransportError: If the control channel itself fails
        """
        reply = self._request("PASV")
        if reply.code != PASV_OK:
            logger.info(f"PASV refused: {reply.text}")
            return None

        endpoint = parse_pasv_reply(reply.message)
        if endpoint is None:
            logger.warning(f"Unparseable PASV reply: {reply.text}")
            return None

        host, port = endpoint
        try:
            transport = self._transport_factory(host, port, self._timeout)
        except OSError as e:
            logger.warning(f"Failed to open data connection to {host}:{port}: {e}")
            return None

        logger.debug(f"Data connection open to {host}:{port}")
        return transport
