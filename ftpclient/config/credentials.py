"""FTP passwords kept in the system keyring.

Entries are keyed by "user@host:port" under the "ftpclient" service.
Anonymous logins are never stored.
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger("ftpclient.credentials")

# User names whose password is only a courtesy e-mail address
ANONYMOUS_USERS = frozenset({"anonymous", "ftp"})


def account_key(host: str, port: int, username: str) -> str:
    """Keyring user name for an FTP account."""
    return f"{username}@{host.lower()}:{port}"


class CredentialManager:
    """Reads and writes FTP account passwords in the system keyring."""

    SERVICE_NAME = "ftpclient"

    def save_password(self, host: str, port: int, username: str, password: str) -> bool:
        """
        Store the password of an FTP account.

        Returns:
            True if stored, False for anonymous accounts or keyring failures
        """
        if username.lower() in ANONYMOUS_USERS:
            return False
        try:
            keyring.set_password(self.SERVICE_NAME, account_key(host, port, username), password)
        except KeyringError as e:
            logger.warning(f"Keyring refused to store password for {username}@{host}: {e}")
            return False
        return True

    def get_password(self, host: str, port: int, username: str) -> Optional[str]:
        """Stored password, or None if there is none or the keyring is unavailable."""
        try:
            return keyring.get_password(self.SERVICE_NAME, account_key(host, port, username))
        except KeyringError as e:
            logger.warning(f"Keyring lookup failed for {username}@{host}: {e}")
            return None

    def delete_password(self, host: str, port: int, username: str) -> bool:
        """
        Forget the password of an FTP account.

        Returns:
            True if an entry was removed
        """
        try:
            keyring.delete_password(self.SERVICE_NAME, account_key(host, port, username))
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            logger.warning(f"Keyring refused to delete password for {username}@{host}: {e}")
            return False
        return True
