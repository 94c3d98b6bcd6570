"""Unit tests for settings and credentials management."""

import json
from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from ftpclient.config.credentials import CredentialManager, account_key
from ftpclient.config.settings import ClientSettings, SettingsManager
from ftpclient.ftp.response import ReplyPolicy


class TestClientSettings:
    """Tests for ClientSettings dataclass."""

    def test_default_values(self):
        """Test default settings values."""
        settings = ClientSettings()
        assert settings.last_host == ""
        assert settings.last_port == 21
        assert settings.last_username == "anonymous"
        assert settings.timeout == 90
        assert settings.reply_policy == "multiline"
        assert settings.confirm_transfers is False
        assert settings.block_size == 10240

    def test_to_dict(self):
        data = ClientSettings(last_host="test.local", last_port=1234).to_dict()

        assert data["last_host"] == "test.local"
        assert data["last_port"] == 1234
        assert "confirm_transfers" in data

    def test_from_dict_ignores_unknown_keys(self):
        settings = ClientSettings.from_dict({
            "last_host": "test.local",
            "unknown_field": "should be ignored",
        })

        assert settings.last_host == "test.local"
        assert not hasattr(settings, "unknown_field")

    def test_to_connection_config(self):
        settings = ClientSettings(
            last_host="ftp.example.com",
            last_port=2121,
            timeout=15,
            reply_policy="legacy",
            confirm_transfers=True,
            accept_125=True,
        )

        config = settings.to_connection_config()

        assert config.host == "ftp.example.com"
        assert config.port == 2121
        assert config.timeout == 15
        assert config.reply_policy is ReplyPolicy.LEGACY
        assert config.confirm_transfers is True
        assert config.accept_125 is True

    def test_to_connection_config_overrides(self):
        config = ClientSettings(last_host="old.example.com").to_connection_config(
            host="new.example.com", port=990
        )
        assert config.host == "new.example.com"
        assert config.port == 990

    def test_to_connection_config_without_host(self):
        with pytest.raises(ValueError, match="Host is required"):
            ClientSettings().to_connection_config()


class TestSettingsManager:
    """Tests for SettingsManager persistence."""

    def test_load_missing_file_gives_defaults(self, temp_settings_file):
        settings = SettingsManager(temp_settings_file).load()
        assert settings == ClientSettings()

    def test_save_and_load(self, temp_settings_file):
        manager = SettingsManager(temp_settings_file)
        manager.save(ClientSettings(last_host="ftp.example.com", timeout=30))

        loaded = SettingsManager(temp_settings_file).load()

        assert loaded.last_host == "ftp.example.com"
        assert loaded.timeout == 30
        assert json.loads(temp_settings_file.read_text())["last_host"] == "ftp.example.com"

    def test_corrupt_file_gives_defaults(self, temp_settings_file):
        temp_settings_file.write_text("{not json")
        assert SettingsManager(temp_settings_file).load() == ClientSettings()

    def test_update(self, temp_settings_file):
        manager = SettingsManager(temp_settings_file)

        updated = manager.update(last_host="a.example.com", bogus=1)

        assert updated.last_host == "a.example.com"
        assert SettingsManager(temp_settings_file).load().last_host == "a.example.com"

    def test_reset_removes_file(self, temp_settings_file):
        manager = SettingsManager(temp_settings_file)
        manager.save(ClientSettings(last_host="x.example.com"))

        assert manager.reset() == ClientSettings()
        assert not temp_settings_file.exists()


class TestCredentialManager:
    """Tests for CredentialManager keyring access."""

    def test_account_key(self):
        assert account_key("FTP.Example.com", 2121, "alice") == "alice@ftp.example.com:2121"

    @patch("ftpclient.config.credentials.keyring")
    def test_save_password(self, mock_keyring):
        manager = CredentialManager()

        assert manager.save_password("ftp.example.com", 21, "alice", "secret") is True
        mock_keyring.set_password.assert_called_once_with(
            "ftpclient", "alice@ftp.example.com:21", "secret"
        )

    @patch("ftpclient.config.credentials.keyring")
    def test_anonymous_is_never_stored(self, mock_keyring):
        manager = CredentialManager()

        assert manager.save_password("ftp.example.com", 21, "Anonymous", "me@") is False
        assert manager.save_password("ftp.example.com", 21, "ftp", "me@") is False
        mock_keyring.set_password.assert_not_called()

    @patch("ftpclient.config.credentials.keyring")
    def test_get_password_per_port(self, mock_keyring):
        mock_keyring.get_password.return_value = "secret"

        assert CredentialManager().get_password("ftp.example.com", 990, "alice") == "secret"
        mock_keyring.get_password.assert_called_once_with(
            "ftpclient", "alice@ftp.example.com:990"
        )

    @patch("ftpclient.config.credentials.keyring")
    def test_delete_missing_password(self, mock_keyring):
        mock_keyring.delete_password.side_effect = PasswordDeleteError("not found")

        assert CredentialManager().delete_password("h", 21, "u") is False

    @patch("ftpclient.config.credentials.keyring")
    def test_keyring_errors(self, mock_keyring, caplog):
        mock_keyring.set_password.side_effect = KeyringError("locked")
        mock_keyring.get_password.side_effect = KeyringError("locked")
        mock_keyring.delete_password.side_effect = KeyringError("locked")

        manager = CredentialManager()

        assert manager.save_password("h", 21, "u", "p") is False
        assert manager.get_password("h", 21, "u") is None
        assert manager.delete_password("h", 21, "u") is False
        assert "locked" in caplog.text
