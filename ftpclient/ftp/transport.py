"""Byte stream transport used for control and data connections.

The protocol code only talks to the Transport interface so it can be
driven by a scripted fake in tests. SocketTransport is the real
implementation on top of a blocking TCP socket.
"""

import logging
import socket
from typing import Callable, Optional, Protocol

from ftpclient.ftp.exceptions import FTPTransportError

logger = logging.getLogger("ftpclient.transport")


class Transport(Protocol):
    """Blocking byte stream with a read/write timeout."""

    def readline(self, limit: int = -1) -> bytes:
        ...

    def read(self, size: int) -> bytes:
        ...

    def write(self, data: bytes) -> None:
        ...

    def has_buffered_data(self) -> bool:
        ...

    def set_timeout(self, timeout: float) -> None:
        ...

    def close(self) -> None:
        ...

    def __enter__(self) -> "Transport":
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


# (host, port, timeout) -> open transport; raises OSError on failure
TransportFactory = Callable[[str, int, float], Transport]


class SocketTransport:
    """Transport over a blocking TCP socket with its own read buffer."""

    # Bytes pulled from the socket per recv()
    RECV_SIZE = 8192

    def __init__(self, sock: socket.socket, timeout: Optional[float] = None):
        """
        Wrap an already connected socket.

        Args:
            sock: Connected socket
            timeout: Read/write timeout in seconds (None keeps the socket's)
        """
        self._sock: Optional[socket.socket] = sock
        self._buffer = bytearray()
        self._eof = False
        sock.setblocking(True)
        if timeout is not None:
            self.set_timeout(timeout)

    @classmethod
    def open(cls, host: str, port: int, timeout: float) -> "SocketTransport":
        """
        Connect to host:port.

        Raises:
            OSError: If the connection cannot be established
                (socket.timeout included)
        """
        sock = socket.create_connection((host, port), timeout=timeout)
        logger.debug(f"Opened connection to {host}:{port}")
        return cls(sock, timeout)

    @property
    def closed(self) -> bool:
        """True once close() was called."""
        return self._sock is None

    def _socket(self, operation: str) -> socket.socket:
        if self._sock is None:
            raise FTPTransportError(operation, OSError("transport is closed"))
        return self._sock

    def _fill(self) -> bool:
        """Pull one chunk into the buffer. Returns False at end of stream."""
        if self._eof:
            return False
        sock = self._socket("read")
        try:
            chunk = sock.recv(self.RECV_SIZE)
        except OSError as e:
            raise FTPTransportError("read", e)
        if not chunk:
            self._eof = True
            return False
        self._buffer.extend(chunk)
        return True

    def readline(self, limit: int = -1) -> bytes:
        """
        Read up to and including the next LF.

        Returns whatever is left (possibly b"") at end of stream.
        """
        while b"\n" not in self._buffer:
            if 0 <= limit <= len(self._buffer):
                break
            if not self._fill():
                break

        end = self._buffer.find(b"\n") + 1 or len(self._buffer)
        if 0 <= limit < end:
            end = limit
        line = bytes(self._buffer[:end])
        del self._buffer[:end]
        return line

    def read(self, size: int) -> bytes:
        """Read at most size bytes; b"" means end of stream."""
        if not self._buffer:
            self._fill()
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def write(self, data: bytes) -> None:
        """Write all of data."""
        sock = self._socket("write")
        try:
            sock.sendall(data)
        except OSError as e:
            raise FTPTransportError("write", e)

    def has_buffered_data(self) -> bool:
        """True if bytes were received but not consumed yet."""
        return bool(self._buffer)

    def set_timeout(self, timeout: float) -> None:
        """Set the read/write timeout in seconds."""
        self._socket("configure").settimeout(timeout)

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None
            self._buffer.clear()

    def __enter__(self) -> "SocketTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
