"""Reply parsing for the FTP control channel.

Provides the Reply value type, reply code extraction and ResponseParser,
which reads one logical (possibly multi-line) reply from a transport.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from ftpclient.ftp.transport import Transport

logger = logging.getLogger("ftpclient.response")


class ReplyPolicy(Enum):
    """How the end of a multi-line reply is detected."""
    # RFC 959: "ddd-" opens a reply that ends at the first "ddd " line
    MULTILINE = "multiline"
    # Keep reading while the transport still holds unread bytes
    LEGACY = "legacy"


@dataclass(frozen=True)
class Reply:
    """One server reply."""
    code: int = 0
    message: str = ""
    lines: Tuple[str, ...] = ()

    @property
    def is_preliminary(self) -> bool:
        """True for 1yz replies."""
        return 100 <= self.code < 200

    @property
    def text(self) -> str:
        """Message without the line terminator."""
        return self.message.rstrip("\r\n")


def parse_reply_code(line: str) -> int:
    """
    Extract the numeric reply code of a line.

    Args:
        line: Raw reply line

    Returns:
        The first three characters after leading whitespace as an int,
        or 0 if they are not all digits
    """
    head = line.lstrip()[:3]
    if len(head) == 3 and head.isdigit() and head.isascii():
        return int(head)
    return 0


class ResponseParser:
    """Reads one logical reply from a control transport."""

    # Longest reply line read in one go
    MAX_LINE = 8192

    def __init__(
        self,
        policy: ReplyPolicy = ReplyPolicy.MULTILINE,
        encoding: str = "utf-8"
    ):
        self.policy = policy
        self.encoding = encoding

    def _readline(self, transport: Transport) -> str:
        raw = transport.readline(self.MAX_LINE)
        if len(raw) >= self.MAX_LINE and not raw.endswith(b"\n"):
            self._skip_rest_of_line(transport)
        return raw.decode(self.encoding, errors="replace")

    def _skip_rest_of_line(self, transport: Transport) -> None:
        """Discard an overlong line up to and including its LF."""
        skipped = 0
        while True:
            rest = transport.readline(self.MAX_LINE)
            skipped += len(rest)
            if not rest or rest.endswith(b"\n"):
                break
        logger.warning(f"Reply line longer than {self.MAX_LINE} bytes, dropped {skipped} bytes")

    def read(self, transport: Transport) -> Reply:
        """
        Read the next reply.

        Args:
            transport: Control channel transport

        Returns:
            Reply whose message is the last physical line read.
            End of stream before any line yields Reply(0, "").

        Raises:
            FTPTransportError: If reading fails (timeouts included)
        """
        if self.policy is ReplyPolicy.LEGACY:
            lines = self._read_legacy(transport)
        else:
            lines = self._read_multiline(transport)

        message = lines[-1] if lines else ""
        reply = Reply(
            code=parse_reply_code(message),
            message=message,
            lines=tuple(lines),
        )
        logger.debug(f"Reply {reply.code}: {reply.text}")
        return reply

    def _read_legacy(self, transport: Transport) -> List[str]:
        lines: List[str] = []
        while True:
            line = self._readline(transport)
            if not line:
                break
            lines.append(line)
            if not transport.has_buffered_data():
                break
        return lines

    def _read_multiline(self, transport: Transport) -> List[str]:
        first = self._readline(transport)
        if not first:
            return []

        lines = [first]
        stripped = first.lstrip()
        code = parse_reply_code(first)
        if not code or stripped[3:4] != "-":
            return lines

        # Continuation lines until "ddd " with the same code
        terminator = f"{stripped[:3]} "
        while True:
            line = self._readline(transport)
            if not line:
                logger.warning(f"Connection closed inside multi-line {code} reply")
                break
            lines.append(line)
            if line.startswith(terminator):
                break
        return lines
