"""Integration tests for FTP workflows.

Runs the client against a real pyftpdlib server: login, directory
commands, listings and byte-exact transfers.
"""

import stat
import sys
from unittest.mock import Mock

import pytest

from ftpclient.ftp.connection import ConnectionState, FTPClient, FTPConnectionConfig, connect
from ftpclient.ftp.exceptions import FTPConnectionError, FTPNotConnectedError
from ftpclient.ftp.response import ReplyPolicy
from ftpclient.ftp.transfer import TransferMode

from .mock_ftp_server import MockFTPServer


@pytest.fixture
def ftp_server():
    """Provide a running mock FTP server."""
    server = MockFTPServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def client(ftp_server):
    """Provide a logged-in client."""
    # pyftpdlib replies 125 when the passive socket is already connected
    ftp = connect(ftp_server.host, ftp_server.port, timeout=10, accept_125=True)
    assert ftp.login(ftp_server.username, ftp_server.password) is True
    yield ftp
    if ftp.is_connected:
        ftp.disconnect()


class TestConnectionWorkflow:
    """Connection lifecycle against a live server."""

    def test_connect_login_disconnect(self, ftp_server):
        ftp = connect(ftp_server.host, ftp_server.port, timeout=10)
        assert ftp.state == ConnectionState.CONNECTED
        assert ftp.greeting.code == 220

        assert ftp.login(ftp_server.username, ftp_server.password) is True
        assert ftp.state == ConnectionState.AUTHENTICATED

        ftp.disconnect()
        assert ftp.state == ConnectionState.DISCONNECTED
        with pytest.raises(FTPNotConnectedError):
            ftp.disconnect()

    def test_wrong_password(self, ftp_server):
        with connect(ftp_server.host, ftp_server.port, timeout=10) as ftp:
            assert ftp.login(ftp_server.username, "wrongpassword") is False

    def test_connection_refused(self, ftp_server):
        port = ftp_server.port
        ftp_server.stop()

        with pytest.raises(FTPConnectionError):
            connect("127.0.0.1", port, timeout=5)

    def test_legacy_reply_policy(self, ftp_server):
        ftp = FTPClient()
        ftp.connect(FTPConnectionConfig(
            host=ftp_server.host,
            port=ftp_server.port,
            timeout=10,
            reply_policy=ReplyPolicy.LEGACY,
        ))
        with ftp:
            assert ftp.login(ftp_server.username, ftp_server.password) is True
            assert ftp.get_current_directory() == "/"

    def test_observer_sees_dialogue(self, ftp_server):
        observer = Mock()
        with connect(ftp_server.host, ftp_server.port, observer=observer, timeout=10) as ftp:
            ftp.login(ftp_server.username, ftp_server.password)

        sent = [c.args[0] for c in observer.request_sent.call_args_list]
        assert sent == [
            f"USER {ftp_server.username}\r\n",
            f"PASS {ftp_server.password}\r\n",
            "QUIT\r\n",
        ]
        codes = [c.args[1] for c in observer.response_received.call_args_list]
        assert codes == [220, 331, 230, 221]


class TestDirectoryWorkflow:
    """Directory commands against a live server."""

    def test_directory_scenario(self, client, ftp_server):
        assert client.change_directory("/pub") is True
        assert client.create_directory("new") is True
        assert (ftp_server.root_dir / "pub" / "new").is_dir()

        assert client.rename("new", "renamed") is True
        assert (ftp_server.root_dir / "pub" / "renamed").is_dir()

        assert client.remove_directory("renamed") is True
        assert not (ftp_server.root_dir / "pub" / "renamed").exists()

        client.disconnect()
        assert client.is_connected is False

    def test_pwd_follows_cwd(self, client):
        assert client.get_current_directory() == "/"
        assert client.change_directory("/pub") is True
        assert client.get_current_directory() == "/pub"

    def test_failures_are_false(self, client):
        assert client.change_directory("/missing") is False
        assert client.remove_directory("/missing") is False
        assert client.remove_file("/missing.txt") is False
        assert client.rename("/missing.txt", "/other.txt") is False
        # Session stays usable
        assert client.get_current_directory() == "/"

    def test_remove_file(self, client, ftp_server):
        assert client.remove_file("/pub/readme.txt") is True
        assert not (ftp_server.root_dir / "pub" / "readme.txt").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="SITE CHMOD needs POSIX permissions")
    def test_set_permission(self, client, ftp_server):
        assert client.set_permission("/pub/readme.txt", 0o600) is True
        mode = (ftp_server.root_dir / "pub" / "readme.txt").stat().st_mode
        assert stat.S_IMODE(mode) == 0o600


class TestListing:
    """NLST against a live server."""

    def test_list_directory(self, client):
        assert sorted(client.get_list("/pub")) == ["data.bin", "readme.txt"]

    def test_list_empty_directory(self, client):
        assert client.get_list("/empty") == []

    def test_list_missing_directory(self, client):
        assert client.get_list("/missing") is None
        assert client.get_current_directory() == "/"

    def test_consecutive_listings(self, client):
        """Each listing's completion reply is consumed before the next command."""
        for _ in range(3):
            assert sorted(client.get_list("/pub")) == ["data.bin", "readme.txt"]


class TestTransfers:
    """Uploads and downloads against a live server."""

    def test_download_binary(self, client, ftp_server, tmp_path):
        local = tmp_path / "data.bin"

        result = client.download("/pub/data.bin", local, TransferMode.BINARY)

        assert result.success is True
        assert local.read_bytes() == (ftp_server.root_dir / "pub" / "data.bin").read_bytes()
        assert result.bytes_transferred == 1024

    def test_round_trip_is_byte_exact(self, client, ftp_server, sample_binary_file, tmp_path):
        original = sample_binary_file.read_bytes()

        uploaded = client.upload(sample_binary_file, "/pub/upload.bin", TransferMode.BINARY)
        assert uploaded.success is True
        assert uploaded.bytes_transferred == len(original)

        local = tmp_path / "downloaded.bin"
        downloaded = client.download("/pub/upload.bin", local, TransferMode.BINARY)

        assert downloaded.success is True
        assert local.read_bytes() == original
        assert (ftp_server.root_dir / "pub" / "upload.bin").read_bytes() == original

    def test_download_missing_file(self, client, tmp_path):
        result = client.download("/pub/missing.bin", tmp_path / "x.bin", TransferMode.BINARY)

        assert result.success is False
        assert result.reply.code == 550
        assert client.get_current_directory() == "/"

    def test_strict_completion(self, ftp_server, sample_binary_file, tmp_path):
        config = FTPConnectionConfig(
            host=ftp_server.host,
            port=ftp_server.port,
            timeout=10,
            confirm_transfers=True,
            accept_125=True,
        )
        ftp = FTPClient()
        ftp.connect(config)
        with ftp:
            assert ftp.login(ftp_server.username, ftp_server.password)

            uploaded = ftp.upload(sample_binary_file, "/strict.bin", TransferMode.BINARY)
            assert uploaded.reply.code == 226
            assert (ftp_server.root_dir / "strict.bin").read_bytes() == \
                sample_binary_file.read_bytes()

            downloaded = ftp.download("/strict.bin", tmp_path / "strict.bin")
            assert downloaded.success is True
            assert downloaded.reply.code == 226

    def test_progress_reports_upload_size(self, client, sample_binary_file):
        updates = []

        client.upload(sample_binary_file, "/pub/progress.bin", on_progress=updates.append)

        assert updates[-1].bytes_transferred == sample_binary_file.stat().st_size
        assert updates[-1].percent == 100.0
