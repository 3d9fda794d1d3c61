"""Fetch a single file from remote host over SFTP"""
from .const import ClientConfig, ConnectionState, Status
from .core import RemoteFileFetcher
from .exceptions import (
    AuthorizationError,
    ConnectError,
    DownloadError,
    FileTooLargeError,
    HandshakeError,
    HostResolveError,
    HostValidationError,
    NetworkUnreachableError,
    NotConnectedError,
    PasswordAuthorizationError,
    PermissionDeniedError,
    ReadError,
    RemoteFileNotFoundError,
    SessionDeadError,
    SessionInitError,
    SFTPFetchError,
    SFTPInitError,
    SockTimeoutError,
)

__all__ = [
    "AuthorizationError",
    "ClientConfig",
    "ConnectError",
    "ConnectionState",
    "DownloadError",
    "FileTooLargeError",
    "HandshakeError",
    "HostResolveError",
    "HostValidationError",
    "NetworkUnreachableError",
    "NotConnectedError",
    "PasswordAuthorizationError",
    "PermissionDeniedError",
    "ReadError",
    "RemoteFileFetcher",
    "RemoteFileNotFoundError",
    "SessionDeadError",
    "SessionInitError",
    "SFTPFetchError",
    "SFTPInitError",
    "SockTimeoutError",
    "Status",
]
