"""FTP control connection for the ftpclient package.

Provides ConnectionState and DataConnectionMode enums, the
FTPConnectionConfig dataclass and FTPClient, which owns the control
channel and implements every command.
"""

import logging
import socket
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ftpclient.ftp.exceptions import (
    FTPConfigurationError,
    FTPConnectionError,
    FTPError,
    FTPInvalidArgumentError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
    FTPTransportError,
)
from ftpclient.ftp.observer import ConnectionObserver
from ftpclient.ftp.passive import PassiveDataNegotiator
from ftpclient.ftp.response import Reply, ReplyPolicy, ResponseParser
from ftpclient.ftp.transfer import (
    ProgressCallback,
    TransferEngine,
    TransferMode,
    TransferResult,
)
from ftpclient.ftp.transport import SocketTransport, Transport, TransportFactory
from ftpclient.utils.validators import validate_permission_mode

logger = logging.getLogger("ftpclient.connection")

DEFAULT_PORT = 21
DEFAULT_TIMEOUT = 90
DEFAULT_BLOCK_SIZE = 10240


class ConnectionState(Enum):
    """FTP connection state."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


class DataConnectionMode(Enum):
    """How data connections are established."""
    PASSIVE = "passive"
    ACTIVE = "active"


@dataclass
class FTPConnectionConfig:
    """FTP connection configuration."""
    host: str
    port: int = DEFAULT_PORT
    connection_mode: DataConnectionMode = DataConnectionMode.PASSIVE
    timeout: float = DEFAULT_TIMEOUT
    reply_policy: ReplyPolicy = ReplyPolicy.MULTILINE
    # Read the final 226 reply of each transfer before returning
    confirm_transfers: bool = False
    # Also start transfers on 125 "data connection already open"
    accept_125: bool = False
    block_size: int = DEFAULT_BLOCK_SIZE
    encoding: str = "utf-8"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.host:
            raise ValueError("Host is required")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {self.port}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")
        if self.block_size <= 0:
            raise ValueError(f"Block size must be positive, got {self.block_size}")


class FTPClient:
    """FTP client session over a single control connection.

    Server rejections are reported as False / None / failed
    TransferResult. Exceptions are reserved for misuse and
    connection-level failures.
    """

    GREETING_OK = 220

    def __init__(
        self,
        observer: Optional[ConnectionObserver] = None,
        transport_factory: Optional[TransportFactory] = None
    ):
        """
        Initialize the client.

        Args:
            observer: Optional observer of the control channel dialogue
            transport_factory: Opens transports, defaults to TCP sockets
        """
        self._observer = observer
        self._transport_factory = transport_factory or SocketTransport.open
        self._transport: Optional[Transport] = None
        self._config: Optional[FTPConnectionConfig] = None
        self._parser: Optional[ResponseParser] = None
        self._negotiator: Optional[PassiveDataNegotiator] = None
        self._transfers = TransferEngine(self)
        self._state = ConnectionState.DISCONNECTED
        self._connected_at: Optional[datetime] = None
        self._last_reply: Optional[Reply] = None
        self._greeting: Optional[Reply] = None
        self._completion_pending = False

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """True if the control channel is open."""
        return self._transport is not None

    @property
    def config(self) -> Optional[FTPConnectionConfig]:
        """Current connection configuration."""
        return self._config

    @property
    def observer(self) -> Optional[ConnectionObserver]:
        """Observer notified of requests and replies."""
        return self._observer

    @property
    def connected_at(self) -> Optional[datetime]:
        """Timestamp when connection was established."""
        return self._connected_at

    @property
    def greeting(self) -> Optional[Reply]:
        """Server greeting of the current connection."""
        return self._greeting

    @property
    def last_reply(self) -> Optional[Reply]:
        """Most recent reply read from the control channel."""
        return self._last_reply

    def set_observer(self, observer: Optional[ConnectionObserver]) -> None:
        """Register (or with None, remove) the observer."""
        self._observer = observer

    # Connection lifecycle

    def connect(self, config: FTPConnectionConfig) -> None:
        """
        Open the control connection and read the greeting.

        Args:
            config: Connection configuration

        Raises:
            FTPConfigurationError: If the connection mode is not passive
            FTPConnectionError: If the server cannot be reached
            FTPTimeoutError: If connecting times out
            FTPProtocolError: If the greeting code is not 220
        """
        if config.connection_mode is not DataConnectionMode.PASSIVE:
            raise FTPConfigurationError(
                f"Transfer mode is invalid: {config.connection_mode.value} "
                "mode is not supported"
            )
        if self._transport is not None:
            raise FTPError("Already connected; disconnect first")

        self._config = config
        self._state = ConnectionState.CONNECTING
        self._parser = ResponseParser(config.reply_policy, config.encoding)
        self._completion_pending = False

        try:
            transport = self._transport_factory(config.host, config.port, config.timeout)
        except socket.timeout:
            self._state = ConnectionState.ERROR
            raise FTPTimeoutError("Connection", config.timeout)
        except OSError as e:
            self._state = ConnectionState.ERROR
            raise FTPConnectionError(config.host, config.port, e)

        self._transport = transport
        greeting = self._read_reply()
        if greeting.code != self.GREETING_OK:
            self._release(ConnectionState.ERROR)
            raise FTPProtocolError(self.GREETING_OK, greeting.code, greeting.message)

        self._greeting = greeting
        self._negotiator = PassiveDataNegotiator(
            self.request, self._transport_factory, config.timeout
        )
        self._state = ConnectionState.CONNECTED
        self._connected_at = datetime.now()
        logger.info(f"Connected to {config.host}:{config.port}")

    def login(self, username: str, password: str) -> bool:
        """
        Log in with USER / PASS.

        Returns:
            True if the server accepted both, False otherwise
        """
        reply = self.request(f"USER {username}")
        if reply.code != 331:
            logger.info(f"USER rejected for '{username}': {reply.text}")
            return False

        reply = self.request(f"PASS {password}")
        if reply.code != 230:
            logger.info(f"Login failed for '{username}': {reply.text}")
            return False

        self._state = ConnectionState.AUTHENTICATED
        logger.info(f"Logged in as '{username}'")
        return True

    def disconnect(self) -> None:
        """
        Send QUIT and close the control connection.

        Raises:
            FTPNotConnectedError: If already disconnected
        """
        self.require_connected("Disconnect")
        try:
            self.request("QUIT")
        except FTPTransportError as e:
            # Connection goes away either way
            logger.warning(f"QUIT failed: {e}")
        finally:
            self._release(ConnectionState.DISCONNECTED)
        logger.info("Disconnected")

    def _release(self, state: ConnectionState) -> None:
        if self._transport is not None:
            self._transport.close()
        self._transport = None
        self._negotiator = None
        self._completion_pending = False
        self._connected_at = None
        self._state = state

    def require_connected(self, operation: str = "Operation") -> Transport:
        """
        Get the control transport.

        Raises:
            FTPNotConnectedError: If not connected
        """
        if self._transport is None:
            raise FTPNotConnectedError(operation)
        return self._transport

    def __enter__(self) -> "FTPClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._transport is not None:
            self.disconnect()

    # Control channel

    def request(self, command: str) -> Reply:
        """
        Send one command line and read its reply.

        Args:
            command: Command without line terminator, e.g. "CWD /pub"

        Returns:
            The server reply

        Raises:
            FTPNotConnectedError: If not connected
            FTPTransportError: If the control connection fails
        """
        transport = self.require_connected(command.split(" ", 1)[0] or "Request")
        self._drain_completion()

        line = f"{command}\r\n"
        if self._observer is not None:
            self._observer.request_sent(line)
        try:
            transport.write(line.encode(self._config.encoding))
        except FTPTransportError:
            self._release(ConnectionState.ERROR)
            raise
        return self._read_reply()

    def _read_reply(self) -> Reply:
        transport = self.require_connected("Reply")
        try:
            reply = self._parser.read(transport)
        except FTPTransportError:
            self._release(ConnectionState.ERROR)
            raise

        if not reply.lines:
            logger.warning("Control connection closed by server")
        self._last_reply = reply
        if self._observer is not None:
            for line in reply.lines:
                self._observer.response_received(line, reply.code)
        return reply

    def expect_completion_reply(self) -> None:
        """Mark that a transfer's final reply is still to be read."""
        self._completion_pending = True

    def read_completion_reply(self) -> Reply:
        """Read the final reply of the last transfer now."""
        self._completion_pending = False
        return self._read_reply()

    def _drain_completion(self) -> None:
        """Consume an unread transfer completion reply without checking it."""
        if not self._completion_pending:
            return
        self._completion_pending = False
        reply = self._read_reply()
        if reply.code // 100 != 2:
            logger.warning(f"Previous transfer finished with {reply.code}: {reply.text}")

    def open_data_connection(self) -> Optional[Transport]:
        """
        Open a passive data connection.

        Returns:
            Open transport, or None if negotiation failed
        """
        self.require_connected("Data connection")
        return self._negotiator.open()

    # Commands

    def get_current_directory(self) -> Optional[str]:
        """
        Get the current working directory with PWD.

        Returns:
            Directory path, or None on failure
        """
        reply = self.request("PWD")
        if reply.code != 257:
            return None

        message = reply.message
        first = message.find('"')
        last = message.rfind('"')
        if first < 0 or first == last:
            logger.warning(f"PWD reply without quoted path: {reply.text}")
            return None
        return message[first + 1:last]

    def change_directory(self, path: str) -> bool:
        """Change the working directory with CWD."""
        return self.request(f"CWD {path}").code == 250

    def remove_directory(self, path: str) -> bool:
        """Remove a directory with RMD."""
        return self.request(f"RMD {path}").code == 250

    def create_directory(self, path: str) -> bool:
        """Create a directory with MKD."""
        return self.request(f"MKD {path}").code == 257

    def rename(self, old_name: str, new_name: str) -> bool:
        """
        Rename a file or directory with RNFR / RNTO.

        A failed RNTO is not rolled back; the server keeps whatever
        state RNFR left.

        Returns:
            True if both steps succeeded
        """
        if self.request(f"RNFR {old_name}").code != 350:
            return False
        return self.request(f"RNTO {new_name}").code == 250

    def remove_file(self, path: str) -> bool:
        """Delete a file with DELE."""
        return self.request(f"DELE {path}").code == 250

    def set_permission(self, path: str, mode: int) -> bool:
        """
        Change permissions with SITE CHMOD.

        Args:
            path: Remote path
            mode: Permission bits, 0 to 0o777

        Returns:
            True if the server accepted the change

        Raises:
            FTPInvalidArgumentError: If mode is out of range
        """
        is_valid, error = validate_permission_mode(mode)
        if not is_valid:
            raise FTPInvalidArgumentError(error)
        return self.request(f"SITE CHMOD {mode:o} {path}").code == 200

    # Transfers

    def get_list(self, directory: str = "") -> Optional[List[str]]:
        """List names in a directory with NLST. None on failure."""
        return self._transfers.get_list(directory)

    def download(
        self,
        remote_path: str,
        local_path: Union[str, Path],
        mode: TransferMode = TransferMode.BINARY,
        on_progress: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """Download remote_path to local_path. See TransferEngine.download."""
        return self._transfers.download(remote_path, local_path, mode, on_progress)

    def upload(
        self,
        local_path: Union[str, Path],
        remote_path: str,
        mode: TransferMode = TransferMode.BINARY,
        on_progress: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """Upload local_path to remote_path. See TransferEngine.upload."""
        return self._transfers.upload(local_path, remote_path, mode, on_progress)


def connect(
    host: str,
    port: int = DEFAULT_PORT,
    connection_mode: DataConnectionMode = DataConnectionMode.PASSIVE,
    observer: Optional[ConnectionObserver] = None,
    transport_factory: Optional[TransportFactory] = None,
    **options
) -> FTPClient:
    """
    Connect to an FTP server and return the connected client.

    Args:
        host: Server host
        port: Server port
        connection_mode: Must be DataConnectionMode.PASSIVE
        observer: Optional observer of the control channel dialogue
        transport_factory: Opens transports, defaults to TCP sockets
        **options: Other FTPConnectionConfig fields (timeout, ...)

    Raises:
        FTPConfigurationError: If the connection mode is not passive
        FTPConnectionError: If the server cannot be reached
        FTPProtocolError: If the greeting code is not 220
    """
    config = FTPConnectionConfig(
        host=host, port=port, connection_mode=connection_mode, **options
    )
    client = FTPClient(observer=observer, transport_factory=transport_factory)
    client.connect(config)
    return client
