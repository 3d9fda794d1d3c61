"""Owned SSH resources"""
import logging
import socket
import typing as t
import weakref

import ssh2.exceptions
from ssh2.session import Session
from ssh2.sftp import LIBSSH2_FXF_READ, LIBSSH2_SFTP_S_IRUSR

from . import const, utils
from . import exceptions as excs

logger = logging.getLogger(__name__)


def _release(sock: socket.socket, session: Session):
    logger.debug("Sending SSH disconnect.")
    try:
        session.disconnect()
    except (ssh2.exceptions.SSH2Error, OSError) as exc:
        logger.warning("Ignoring error on SSH disconnect: %s", type(exc).__name__)
    try:
        sock.close()
    except OSError as exc:
        logger.warning("Ignoring error on socket close: %s", exc)
    logger.debug("SSH session released.")


class SessionHandle:
    """Exclusive owner of connected socket and SSH session

    Teardown runs exactly once, either on :meth:`close` or when
    the handle is garbage collected.

    :param sock: Connected socket.
    :param session: SSH session made over `sock`.
    """

    def __init__(self, sock: socket.socket, session: Session):
        self._session = session
        self._alive = True
        self._finalizer = weakref.finalize(self, _release, sock, session)

    @property
    def session(self) -> Session:
        """Underlying SSH session"""  # noqa: D401
        if self.closed:
            raise excs.NotConnectedError("SSH session is already closed")
        return self._session

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    @property
    def alive(self) -> bool:
        """Session is open and no transport failure was seen"""
        return self._alive and not self.closed

    def mark_dead(self):
        if self._alive:
            logger.warning("SSH session marked as dead.")
        self._alive = False

    @property
    def last_error(self) -> str:
        """Last error of SSH session"""  # noqa: D401
        try:
            error = self.session.last_error()
            if isinstance(error, bytes):
                return error.decode("utf-8", "replace")
            return error or ""
        except (ssh2.exceptions.SSH2Error, excs.NotConnectedError):
            return ""

    def close(self):
        """Release session and socket, does nothing if already released"""
        self._finalizer()


class SFTPChannel:
    """SFTP subchannel over :class:`SessionHandle`

    :param handle: Authenticated session handle.
    :raise SFTPInitError: If server refused SFTP subsystem.
    :raise SessionDeadError: If transport was dropped.
    """

    def __init__(self, handle: SessionHandle):
        self.handle = handle
        logger.debug("Opening SFTP subchannel...")
        try:
            self._sftp = handle.session.sftp_init()
        except utils.SESSION_DROP_ERRORS as exc:
            handle.mark_dead()
            raise excs.SessionDeadError(
                "<sftp>", 0, "connection was dropped while opening SFTP", handle.last_error
            ) from exc
        except ssh2.exceptions.SSH2Error as exc:
            raise excs.SFTPInitError(
                f"Failed to open SFTP subchannel: {handle.last_error or type(exc).__name__}"
            ) from exc
        if self._sftp is None:
            raise excs.SFTPInitError("Failed to open SFTP subchannel")
        logger.debug("SFTP subchannel opened.")

    @property
    def closed(self) -> bool:
        return self._sftp is None

    def open_for_read(self, path: str) -> t.Any:
        """Open remote file in read-only mode

        :param path: Remote file path.
        :return: SFTP file handle.
        :raise RemoteFileNotFoundError: If file can't be found.
        :raise PermissionDeniedError: If server denied access to the file.
        :raise SessionDeadError: If transport was dropped.
        """
        if self._sftp is None:
            raise excs.SFTPInitError("SFTP subchannel is closed")
        logger.debug("Opening %s for reading.", path)
        try:
            return self._sftp.open(path, LIBSSH2_FXF_READ, LIBSSH2_SFTP_S_IRUSR)
        except utils.SESSION_DROP_ERRORS as exc:
            self.handle.mark_dead()
            raise excs.SessionDeadError(
                path, 0, "connection was dropped while opening file", self.handle.last_error
            ) from exc
        except ssh2.exceptions.SSH2Error as exc:
            code = self._sftp.last_error()
            if code == const.SSH_FX_PERMISSION_DENIED:
                raise excs.PermissionDeniedError(
                    f"Can't open {path}: permission denied"
                ) from exc
            raise excs.RemoteFileNotFoundError(
                f"Can't open {path}: no such file (sftp status {code})"
            ) from exc

    def close(self):
        """Drop SFTP subchannel, libssh2 shuts it down on release"""
        if self._sftp is not None:
            logger.debug("Closing SFTP subchannel.")
            self._sftp = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
