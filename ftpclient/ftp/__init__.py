"""FTP protocol module for the ftpclient package.

This module handles all FTP-related functionality:
- FTPClient: Control channel, connection lifecycle and commands
- ResponseParser: Reply reading (RFC 959 multi-line or legacy draining)
- PassiveDataNegotiator: PASV parsing and data connection setup
- TransferEngine: NLST / RETR / STOR data transfers
- Exceptions: FTP-specific error types
"""
