"""Observers notified of the control channel dialogue."""

import logging
from typing import Optional, Protocol


class ConnectionObserver(Protocol):
    """Receives every command line sent and every reply received."""

    def request_sent(self, request: str) -> None:
        """Called with the raw command line, CRLF included."""
        ...

    def response_received(self, message: str, code: int) -> None:
        """Called once per raw reply line with the code of the whole reply.

        Multi-line replies produce one call per line.
        """
        ...


class LoggingObserver:
    """Writes the control channel dialogue to a logger at DEBUG level.

    Pair with setup_logging() so PASS arguments are redacted.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self._logger = logger or logging.getLogger("ftpclient.wire")
        self._level = level

    def request_sent(self, request: str) -> None:
        self._logger.log(self._level, f">>> {request.rstrip()}")

    def response_received(self, message: str, code: int) -> None:
        self._logger.log(self._level, f"<<< {message.rstrip()}")
