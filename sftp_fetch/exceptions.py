"""Package exceptions"""
import logging
import typing as t

from . import const

logger = logging.getLogger(__name__)


class SFTPFetchError(Exception):
    """Base exception for sftp-fetch package"""

    def __init__(self, message: str):
        self.message = message
        logger.error(self.message)
        return super().__init__(self.message)


class ConnectError(SFTPFetchError):
    """Connection failed"""


class NetworkUnreachableError(ConnectError):
    """Failed to open TCP connection to remote host"""


class HostResolveError(NetworkUnreachableError):
    """Failed to resolve host (dns)"""


class SockTimeoutError(ConnectError):
    """Connection timeout reached while creating connection"""


class SessionInitError(ConnectError):
    """SSH session object can't be created"""


class HandshakeError(ConnectError):
    """Handshake failed"""


class HostValidationError(ConnectError):
    """Host validation failed"""


class AuthorizationError(ConnectError):
    """Authorization failed"""


class PasswordAuthorizationError(AuthorizationError):
    """Authorization with password failed"""


class DownloadError(SFTPFetchError):
    """Download failed"""


class NotConnectedError(DownloadError):
    """Operation requires an established connection"""


class SFTPInitError(DownloadError):
    """SFTP subchannel can't be opened"""


class RemoteFileNotFoundError(DownloadError):
    """Requested file not found"""


class PermissionDeniedError(DownloadError):
    """Not enough permissions to read requested file"""


class _PartialDownloadError(DownloadError):
    def __init__(
        self,
        path: str,
        bytes_read: int,
        reason: str,
        error: t.Optional[str] = None,
    ):
        #: Bytes received before the failure, the data itself is discarded.
        self.bytes_read = bytes_read
        self.path = path
        super().__init__(
            const.DOWNLOAD_FAILED_MESSAGE.format(
                path=path,
                bytes_read=bytes_read,
                reason=reason,
                last_error=error or "n/a",
            )
        )


class ReadError(_PartialDownloadError):
    """Reading from remote file failed"""


class SessionDeadError(_PartialDownloadError):
    """SSH session was dropped or stalled, reconnect is required"""


class FileTooLargeError(_PartialDownloadError):
    """Remote file exceeds configured size limit"""

    def __init__(self, path: str, bytes_read: int, limit: int):
        #: Configured maximum byte count
        self.limit = limit
        super().__init__(path, bytes_read, f"file is larger than {limit} bytes")
