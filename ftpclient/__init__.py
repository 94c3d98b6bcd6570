"""Passive-mode FTP client.

Control channel handling, reply parsing, PASV negotiation and
upload / download / listing over data connections.
"""

from .ftp.connection import (
    ConnectionState,
    DataConnectionMode,
    FTPClient,
    FTPConnectionConfig,
    connect,
)
from .ftp.exceptions import (
    FTPConfigurationError,
    FTPConnectionError,
    FTPError,
    FTPInvalidArgumentError,
    FTPLocalFileError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
    FTPTransportError,
)
from .ftp.observer import ConnectionObserver, LoggingObserver
from .ftp.response import Reply, ReplyPolicy
from .ftp.transfer import TransferMode, TransferProgress, TransferResult

__version__ = "1.0.0"
