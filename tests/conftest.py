"""Pytest configuration and shared fixtures for ftpclient tests."""

import pytest
from pathlib import Path
from typing import Generator
from dataclasses import dataclass


# Test constants
TEST_FTP_HOST = "127.0.0.1"
TEST_FTP_USER = "testuser"
TEST_FTP_PASS = "testpass"


@dataclass
class MockFTPConfig:
    """Credentials used for the mock FTP server in tests."""
    host: str = TEST_FTP_HOST
    username: str = TEST_FTP_USER
    password: str = TEST_FTP_PASS


@pytest.fixture
def ftp_config() -> MockFTPConfig:
    """Provide mock FTP configuration for tests."""
    return MockFTPConfig()


@pytest.fixture
def temp_settings_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Provide a temporary settings file path for testing."""
    settings_file = tmp_path / "settings.json"
    yield settings_file
    # Cleanup handled by tmp_path fixture


@pytest.fixture
def sample_binary_file(tmp_path: Path) -> Path:
    """Create a file whose bytes must survive a transfer untranslated."""
    binary_file = tmp_path / "sample.bin"
    binary_file.write_bytes(b"\x7fELF" + b"\r\n\n\r\x00" * 2000 + bytes(range(256)))
    return binary_file
