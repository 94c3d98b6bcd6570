"""Client settings management for the ftpclient package.

Provides ClientSettings dataclass and SettingsManager for persistence.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from ftpclient.config.paths import get_settings_path
from ftpclient.ftp.connection import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    FTPConnectionConfig,
)
from ftpclient.ftp.response import ReplyPolicy


@dataclass
class ClientSettings:
    """Client settings that persist between sessions."""

    # Connection defaults
    last_host: str = ""
    last_port: int = DEFAULT_PORT
    last_username: str = "anonymous"
    timeout: float = DEFAULT_TIMEOUT

    # Protocol behaviour
    reply_policy: str = ReplyPolicy.MULTILINE.value
    confirm_transfers: bool = False
    accept_125: bool = False
    block_size: int = DEFAULT_BLOCK_SIZE
    encoding: str = "utf-8"

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ClientSettings":
        """Create settings from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    def to_connection_config(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None
    ) -> FTPConnectionConfig:
        """
        Build a connection configuration from these settings.

        Args:
            host: Host overriding last_host
            port: Port overriding last_port

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        return FTPConnectionConfig(
            host=host or self.last_host,
            port=port or self.last_port,
            timeout=self.timeout,
            reply_policy=ReplyPolicy(self.reply_policy),
            confirm_transfers=self.confirm_transfers,
            accept_125=self.accept_125,
            block_size=self.block_size,
            encoding=self.encoding,
        )


class SettingsManager:
    """Manages client settings persistence."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to platform standard
        """
        self._config_path = config_path or get_settings_path()
        self._settings: Optional[ClientSettings] = None

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    def load(self) -> ClientSettings:
        """
        Load settings from disk.

        Returns:
            ClientSettings instance (defaults if file not found)
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                self._settings = ClientSettings.from_dict(data)
            except (json.JSONDecodeError, IOError, TypeError, AttributeError):
                # Invalid or unreadable file, use defaults
                self._settings = ClientSettings()
        else:
            self._settings = ClientSettings()

        return self._settings

    def save(self, settings: ClientSettings) -> None:
        """
        Persist settings to disk.

        Args:
            settings: Settings to save
        """
        self._settings = settings
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

    def reset(self) -> ClientSettings:
        """
        Reset to default settings.

        Returns:
            Default ClientSettings instance
        """
        self._settings = ClientSettings()

        if self._config_path.exists():
            self._config_path.unlink()

        return self._settings

    def update(self, **kwargs) -> ClientSettings:
        """
        Update specific settings fields.

        Args:
            **kwargs: Field names and new values

        Returns:
            Updated ClientSettings instance
        """
        if self._settings is None:
            self.load()

        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)

        self.save(self._settings)
        return self._settings
