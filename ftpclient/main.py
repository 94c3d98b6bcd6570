"""Command-line entry point for the ftpclient package.

Connects, logs in, runs one operation and disconnects. Exit status is 0
on success, 1 when the server rejected the operation and 2 on errors.
"""

import argparse
import logging
import sys
from pathlib import Path, PurePosixPath
from typing import List, Optional

from .config.credentials import CredentialManager
from .config.settings import ClientSettings, SettingsManager
from .ftp.connection import FTPClient
from .ftp.exceptions import FTPError
from .ftp.observer import LoggingObserver
from .ftp.response import ReplyPolicy
from .ftp.transfer import TransferMode, TransferProgress
from .utils.logging import setup_logging
from .utils.validators import validate_host, validate_port, validate_timeout

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2

ANONYMOUS_PASSWORD = "anonymous@"


def _octal(value: str) -> int:
    try:
        return int(value, 8)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid octal mode: {value}")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ftpclient",
        description="Passive-mode FTP client."
    )
    parser.add_argument('--host', help='Server host (default: last used)')
    parser.add_argument('-p', '--port', type=int, help='Server port (default: last used or 21)')
    parser.add_argument('-u', '--user', help='User name (default: last used or anonymous)')
    parser.add_argument('--password', help='Password (default: keyring, then anonymous)')
    parser.add_argument('--timeout', type=float, help='Read/write timeout in seconds')
    parser.add_argument(
        '--save-password',
        action='store_true',
        help='Store the password in the system keyring after a successful login'
    )
    parser.add_argument(
        '--forget-password',
        action='store_true',
        help='Remove the stored password for this account before connecting'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Require the 226 completion reply after every transfer'
    )
    parser.add_argument(
        '--accept-125',
        action='store_true',
        help='Also start transfers on 125 "data connection already open"'
    )
    parser.add_argument(
        '--legacy-replies',
        action='store_true',
        help='Read replies by draining buffered lines instead of RFC 959 continuation'
    )
    parser.add_argument('--log-file', type=Path, help='Also write the log to this file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show the FTP dialogue')

    subparsers = parser.add_subparsers(dest='command', required=True)

    parser_ls = subparsers.add_parser('ls', help='List names in a directory')
    parser_ls.add_argument('directory', nargs='?', default='')

    for name, verb in (('get', 'Download'), ('put', 'Upload')):
        sub = subparsers.add_parser(name, help=f'{verb} a file')
        sub.add_argument('source')
        sub.add_argument('destination', nargs='?')
        sub.add_argument('--ascii', action='store_true', help='Transfer with TYPE A')

    subparsers.add_parser('pwd', help='Print the working directory')

    for name, help_text in (
        ('mkdir', 'Create a directory'),
        ('rmdir', 'Remove a directory'),
        ('rm', 'Delete a file'),
    ):
        subparsers.add_parser(name, help=help_text).add_argument('path')

    parser_mv = subparsers.add_parser('mv', help='Rename a file or directory')
    parser_mv.add_argument('old_name')
    parser_mv.add_argument('new_name')

    parser_chmod = subparsers.add_parser('chmod', help='Change permissions (SITE CHMOD)')
    parser_chmod.add_argument('mode', type=_octal, help='Octal mode, e.g. 644')
    parser_chmod.add_argument('path')

    return parser


def _print_progress(progress: TransferProgress) -> None:
    if progress.bytes_total:
        sys.stderr.write(f"\r{progress.remote_path}: {progress.percent:5.1f}%")
    else:
        sys.stderr.write(f"\r{progress.remote_path}: {progress.bytes_transferred} bytes")
    sys.stderr.flush()


def execute(client: FTPClient, args: argparse.Namespace) -> bool:
    """
    Run the selected command on a logged-in client.

    Returns:
        True if the server accepted the operation
    """
    command = args.command

    if command == 'ls':
        names = client.get_list(args.directory)
        if names is None:
            return False
        for name in names:
            print(name)
        return True

    if command == 'pwd':
        directory = client.get_current_directory()
        if directory is None:
            return False
        print(directory)
        return True

    if command in ('get', 'put'):
        mode = TransferMode.ASCII if args.ascii else TransferMode.BINARY
        on_progress = _print_progress if args.verbose else None
        if command == 'get':
            local = args.destination or PurePosixPath(args.source).name
            result = client.download(args.source, local, mode, on_progress)
        else:
            remote = args.destination or Path(args.source).name
            result = client.upload(args.source, remote, mode, on_progress)
        if on_progress:
            sys.stderr.write("\n")
        if not result:
            print(f"{command} failed: {result.error_message}", file=sys.stderr)
        return result.success

    if command == 'mkdir':
        return client.create_directory(args.path)
    if command == 'rmdir':
        return client.remove_directory(args.path)
    if command == 'rm':
        return client.remove_file(args.path)
    if command == 'mv':
        return client.rename(args.old_name, args.new_name)
    if command == 'chmod':
        return client.set_permission(args.path, args.mode)

    raise ValueError(f"Unknown command: {command}")


def run(
    args: argparse.Namespace,
    settings_manager: SettingsManager,
    credentials: CredentialManager
) -> int:
    """Connect, log in, execute args.command and disconnect."""
    logger = logging.getLogger("ftpclient.main")
    settings = settings_manager.load()

    host = args.host or settings.last_host
    port = args.port or settings.last_port
    username = args.user or settings.last_username or "anonymous"

    for is_valid, error in (
        validate_host(host),
        validate_port(port),
        validate_timeout(args.timeout if args.timeout is not None else settings.timeout),
    ):
        if not is_valid:
            print(f"Error: {error}", file=sys.stderr)
            return EXIT_ERROR

    effective = ClientSettings.from_dict(settings.to_dict())
    if args.timeout is not None:
        effective.timeout = args.timeout
    if args.strict:
        effective.confirm_transfers = True
    if args.accept_125:
        effective.accept_125 = True
    if args.legacy_replies:
        effective.reply_policy = ReplyPolicy.LEGACY.value

    if args.forget_password:
        if credentials.delete_password(host, port, username):
            logger.info(f"Forgot stored password for {username}@{host}")

    password = args.password
    if password is None and not args.forget_password:
        password = credentials.get_password(host, port, username)
    if password is None:
        password = ANONYMOUS_PASSWORD

    observer = LoggingObserver() if args.verbose else None
    client = FTPClient(observer=observer)

    try:
        client.connect(effective.to_connection_config(host=host, port=port))
        with client:
            if not client.login(username, password):
                print(f"Login failed for '{username}'", file=sys.stderr)
                return EXIT_FAILED

            settings_manager.update(last_host=host, last_port=port, last_username=username)
            if args.save_password and args.password is not None:
                credentials.save_password(host, port, username, password)

            ok = execute(client, args)
    except (FTPError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK if ok else EXIT_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    setup_logging(level=level, log_file=args.log_file)

    return run(args, SettingsManager(), CredentialManager())


if __name__ == "__main__":
    sys.exit(main())
