"""Configuration module for the ftpclient package.

This module handles client settings and credentials:
- SettingsManager: JSON-based settings persistence
- CredentialManager: Secure credential storage via keyring
- Paths: Per-platform application data locations
- ClientSettings: Settings dataclass
"""
