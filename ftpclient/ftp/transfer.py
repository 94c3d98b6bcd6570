"""Data transfers over passive connections.

Sequences TYPE, PASV and the transfer verb (NLST, RETR, STOR) and moves
bytes between the data connection and local files.
"""

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Callable, List, Optional, Tuple, Union

from ftpclient.ftp.exceptions import FTPInvalidArgumentError, FTPLocalFileError
from ftpclient.ftp.response import Reply

if TYPE_CHECKING:
    from ftpclient.ftp.connection import FTPClient

logger = logging.getLogger("ftpclient.transfer")

# Positive preliminary reply to NLST/RETR/STOR
TRANSFER_START = 150
# "Data connection already open", accepted only with accept_125
TRANSFER_ALREADY_OPEN = 125
# Final replies accepted when transfers are confirmed
TRANSFER_COMPLETE_CODES = (226, 250)
TYPE_OK = 200

LINE_BREAKS = re.compile(r"[\r\n]+")


class TransferMode(Enum):
    """Representation type of a transfer (FTP TYPE argument)."""
    ASCII = "A"
    BINARY = "I"


@dataclass
class TransferProgress:
    """Progress information for a transfer."""
    remote_path: str
    bytes_transferred: int
    bytes_total: int = 0

    @property
    def percent(self) -> float:
        """Transfer progress as percentage (0-100), 0 when the size is unknown."""
        if self.bytes_total == 0:
            return 0.0
        return (self.bytes_transferred / self.bytes_total) * 100.0


@dataclass
class TransferResult:
    """Result of a single download or upload."""
    success: bool
    remote_path: str
    bytes_transferred: int = 0
    reply: Optional[Reply] = None
    error_message: Optional[str] = None
    duration_seconds: float = 0.0

    def __bool__(self) -> bool:
        return self.success


# Type alias for progress callback
ProgressCallback = Callable[[TransferProgress], None]


def resolve_transfer_mode(mode: Union[TransferMode, str]) -> TransferMode:
    """
    Validate a transfer mode.

    Args:
        mode: TransferMode member or its type code ("A" / "I")

    Raises:
        FTPInvalidArgumentError: If mode is neither ASCII nor BINARY
    """
    if isinstance(mode, TransferMode):
        return mode
    try:
        return TransferMode(mode)
    except ValueError:
        raise FTPInvalidArgumentError(f'Invalid mode "{mode}" was given')


def split_listing(raw: str) -> List[str]:
    """Split NLST output into names. Empty output gives an empty list."""
    raw = raw.strip()
    if not raw:
        return []
    return LINE_BREAKS.split(raw)


class TransferEngine:
    """Runs data transfers for an FTP client."""

    def __init__(self, connection: "FTPClient"):
        """
        Initialize the engine.

        Args:
            connection: Connected FTP client owning the control channel
        """
        self._connection = connection

    @property
    def _block_size(self) -> int:
        return self._connection.config.block_size

    @property
    def _start_codes(self) -> Tuple[int, ...]:
        if self._connection.config.accept_125:
            return (TRANSFER_START, TRANSFER_ALREADY_OPEN)
        return (TRANSFER_START,)

    def get_list(self, directory: str = "") -> Optional[List[str]]:
        """
        List names in a remote directory with NLST.

        Args:
            directory: Remote directory (server default when empty)

        Returns:
            List of names, or None if the server refused the listing
        """
        self._connection.require_connected("List")

        command = f"NLST {directory}" if directory else "NLST"
        chunks: List[bytes] = []
        completion = self._run(command, lambda data: self._pump(data.read, chunks.append))
        if completion is None or not completion.ok:
            return None

        raw = b"".join(chunks).decode(self._connection.config.encoding, errors="replace")
        names = split_listing(raw)
        logger.debug(f"Listed {len(names)} entries in '{directory}'")
        return names

    def download(
        self,
        remote_path: str,
        local_path: Union[str, Path],
        mode: Union[TransferMode, str] = TransferMode.BINARY,
        on_progress: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Download a remote file.

        Args:
            remote_path: Remote file path
            local_path: Local destination, created or truncated
            mode: TransferMode.ASCII or TransferMode.BINARY
            on_progress: Optional callback for progress updates

        Returns:
            TransferResult with success/failure status

        Raises:
            FTPInvalidArgumentError: If mode is invalid
            FTPLocalFileError: If the local file cannot be created
        """
        mode = resolve_transfer_mode(mode)
        self._connection.require_connected("Download")

        # Binary mode so line breaks are written exactly as received
        local_file = self._open_local(local_path, "wb")
        with local_file:
            return self._transfer(
                f"RETR {remote_path}",
                remote_path,
                mode,
                lambda data, progress: self._pump(data.read, local_file.write, progress),
                on_progress,
            )

    def upload(
        self,
        local_path: Union[str, Path],
        remote_path: str,
        mode: Union[TransferMode, str] = TransferMode.BINARY,
        on_progress: Optional[ProgressCallback] = None
    ) -> TransferResult:
        """
        Upload a local file.

        Args:
            local_path: Local source file
            remote_path: Remote destination path
            mode: TransferMode.ASCII or TransferMode.BINARY
            on_progress: Optional callback for progress updates

        Returns:
            TransferResult with success/failure status

        Raises:
            FTPInvalidArgumentError: If mode is invalid
            FTPLocalFileError: If the local file cannot be opened
        """
        mode = resolve_transfer_mode(mode)
        self._connection.require_connected("Upload")

        local_file = self._open_local(local_path, "rb")
        with local_file:
            try:
                total = Path(local_path).stat().st_size
            except OSError:
                total = 0
            return self._transfer(
                f"STOR {remote_path}",
                remote_path,
                mode,
                lambda data, progress: self._pump(local_file.read, data.write, progress),
                on_progress,
                bytes_total=total,
            )

    def _open_local(self, local_path: Union[str, Path], mode: str) -> BinaryIO:
        try:
            return open(local_path, mode)
        except OSError as e:
            raise FTPLocalFileError(str(local_path), mode, e)

    def _transfer(
        self,
        command: str,
        remote_path: str,
        mode: TransferMode,
        stream: Callable,
        on_progress: Optional[ProgressCallback],
        bytes_total: int = 0
    ) -> TransferResult:
        start_time = time.time()
        transferred = 0

        def progress(sent: int) -> None:
            nonlocal transferred
            transferred = sent
            if on_progress:
                on_progress(TransferProgress(remote_path, sent, bytes_total))

        def failed(message: str, reply: Optional[Reply] = None) -> TransferResult:
            logger.info(f"{command.split()[0]} {remote_path} failed: {message}")
            return TransferResult(
                success=False,
                remote_path=remote_path,
                bytes_transferred=transferred,
                reply=reply,
                error_message=message,
                duration_seconds=time.time() - start_time,
            )

        reply = self._connection.request(f"TYPE {mode.value}")
        if reply.code != TYPE_OK:
            return failed(f"TYPE {mode.value} refused", reply)

        completion = self._run(command, lambda data: stream(data, progress))
        if completion is None:
            return failed("No data connection or transfer refused", self._connection.last_reply)
        if not completion.ok:
            return failed("Server reported transfer failure", completion.reply)

        duration = time.time() - start_time
        logger.info(f"{command.split()[0]} {remote_path}: {transferred} bytes in {duration:.2f}s")
        return TransferResult(
            success=True,
            remote_path=remote_path,
            bytes_transferred=transferred,
            reply=completion.reply,
            duration_seconds=duration,
        )

    def _run(self, command: str, stream: Callable) -> Optional["_Completion"]:
        """
        Open a data connection, send command and stream the data.

        Returns None if no data connection could be opened or the server
        did not start the transfer.
        """
        data = self._connection.open_data_connection()
        if data is None:
            return None

        with data:
            reply = self._connection.request(command)
            if reply.code not in self._start_codes:
                return None
            self._connection.expect_completion_reply()
            stream(data)

        # The data connection is closed before the final reply is read
        if not self._connection.config.confirm_transfers:
            return _Completion(ok=True, reply=reply)

        final = self._connection.read_completion_reply()
        return _Completion(ok=final.code in TRANSFER_COMPLETE_CODES, reply=final)

    def _pump(
        self,
        read: Callable[[int], bytes],
        write: Callable[[bytes], object],
        progress: Optional[Callable[[int], None]] = None
    ) -> int:
        """Copy chunks from read to write until read returns b""."""
        sent = 0
        while True:
            chunk = read(self._block_size)
            if not chunk:
                break
            write(chunk)
            sent += len(chunk)
            if progress:
                progress(sent)
        return sent


@dataclass
class _Completion:
    ok: bool
    reply: Reply
