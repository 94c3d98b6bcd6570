"""FTP-specific exceptions for the ftpclient package.

Hard errors only: misuse, environment and transport failures. A server
rejecting a command is an expected outcome and is reported through return
values, never through these exceptions.
"""


class FTPError(Exception):
    """Base exception for all FTP-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class FTPConnectionError(FTPError):
    """Failed to open a connection to the FTP server."""

    def __init__(self, host: str, port: int, original_error: Exception = None):
        self.host = host
        self.port = port
        message = f"Failed to connect to {host}:{port}"
        super().__init__(message, original_error)


class FTPTimeoutError(FTPError):
    """FTP operation timed out."""

    def __init__(self, operation: str = "Operation", timeout: float = 90):
        self.timeout = timeout
        message = f"{operation} timed out after {timeout} seconds"
        super().__init__(message)


class FTPProtocolError(FTPError):
    """Server answered with something the session cannot continue from."""

    def __init__(self, expected: int, code: int, message: str = ""):
        self.expected = expected
        self.code = code
        reply = message.strip()
        text = f"Expected reply {expected}, got {code}"
        if reply:
            text = f"{text} ({reply})"
        super().__init__(text)


class FTPConfigurationError(FTPError, ValueError):
    """Connection configuration is not supported."""


class FTPInvalidArgumentError(FTPError, ValueError):
    """An argument passed to an FTP operation is out of range."""


class FTPNotConnectedError(FTPError):
    """Operation attempted without active FTP connection."""

    def __init__(self, operation: str = "Operation"):
        message = f"{operation} requires an active FTP connection"
        super().__init__(message)


class FTPTransportError(FTPError):
    """Reading from or writing to an open connection failed."""

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        message = f"Transport {operation} failed"
        super().__init__(message, original_error)


class FTPLocalFileError(FTPError):
    """Local file for a transfer could not be opened."""

    def __init__(self, path: str, mode: str, original_error: Exception = None):
        self.path = path
        self.mode = mode
        action = "reading" if "r" in mode else "writing"
        message = f"Failed to open local file '{path}' for {action}"
        super().__init__(message, original_error)
