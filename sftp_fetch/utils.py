"""Helper functions and another stuff"""
import logging
import os
import socket
import threading
import typing as t
from getpass import getuser
from hashlib import sha1

import ssh2
import ssh2.exceptions
from ssh2.knownhost import (
    LIBSSH2_KNOWNHOST_KEY_ECDSA_256,
    LIBSSH2_KNOWNHOST_KEY_ECDSA_384,
    LIBSSH2_KNOWNHOST_KEY_ECDSA_521,
    LIBSSH2_KNOWNHOST_KEY_SSHRSA,
    LIBSSH2_KNOWNHOST_KEYENC_RAW,
    LIBSSH2_KNOWNHOST_TYPE_PLAIN,
)
from ssh2.session import (
    LIBSSH2_HOSTKEY_TYPE_ECDSA_256,
    LIBSSH2_HOSTKEY_TYPE_ECDSA_384,
    LIBSSH2_HOSTKEY_TYPE_ECDSA_521,
    LIBSSH2_HOSTKEY_TYPE_RSA,
    Session,
)

from . import const
from . import exceptions as excs

logger = logging.getLogger(__name__)

#: Errors meaning the transport under SSH session is gone or stalled.
SESSION_DROP_ERRORS: t.Tuple[t.Type[Exception], ...] = (
    ssh2.exceptions.SocketDisconnectError,
    ssh2.exceptions.SocketRecvError,
    ssh2.exceptions.SocketSendError,
    ssh2.exceptions.Timeout,
)

HOSTKEYTYPE_MAP: t.Dict[int, int] = {
    LIBSSH2_HOSTKEY_TYPE_RSA: LIBSSH2_KNOWNHOST_KEY_SSHRSA,
    LIBSSH2_HOSTKEY_TYPE_ECDSA_256: LIBSSH2_KNOWNHOST_KEY_ECDSA_256,
    LIBSSH2_HOSTKEY_TYPE_ECDSA_384: LIBSSH2_KNOWNHOST_KEY_ECDSA_384,
    LIBSSH2_HOSTKEY_TYPE_ECDSA_521: LIBSSH2_KNOWNHOST_KEY_ECDSA_521,
}

_init_lock = threading.Lock()
_initialized = False


def init_library() -> bool:
    """Process-wide initialization guard

    libssh2 sets up its global state itself when the first `Session` is
    created. This guard only marks the first use in the process, no matter
    how many fetchers are created. Safe to call from any thread.

    :return: `True` on the first call in the process.
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return False
        logger.debug(
            "First use of libssh2 via ssh2-python %s.",
            getattr(ssh2, "__version__", "unknown"),
        )
        _initialized = True
        return True


def validate_config(config: const.ClientConfig):
    """Validate client configuration

    :param config: Configuration to check.
    :raise ValueError: If any of the fields is unusable.
    """
    if not isinstance(config.host, str) or not config.host:
        raise ValueError("Host must be a non-empty string.")
    if isinstance(config.port, bool) or not isinstance(config.port, int):
        raise ValueError(f"Port must be an integer, got {type(config.port).__name__}.")
    if not 1 <= config.port <= 65535:
        raise ValueError(f"Port must be in range 1-65535, got {config.port}.")
    if not isinstance(config.username, str) or not config.username:
        raise ValueError("Username must be a non-empty string.")
    if not isinstance(config.credential, str):
        raise ValueError("Credential must be a string.")


def log_status(status: const.Status, message: str):
    """Default status observer, writes notifications to the package log

    :param status: Notification kind.
    :param message: Human-readable description.
    """
    logger.info("[%s] %s", status.value, message)


def find_knownhosts() -> str:
    """
    Get known_hosts file full path

    Searches for known hosts file in `~/.ssh` directory.

    :return: Full path to known_hosts file.
    """
    relative_path: str = os.path.join("~", ".ssh", "known_hosts")
    full_path: str = os.path.expanduser(relative_path)
    if (
        relative_path != full_path
        and full_path.startswith("/")
        and os.path.exists(full_path)
    ):
        return full_path
    return os.path.join("/home", getuser(), ".ssh", "known_hosts")


def pick_knownhost_typemask(hostkey_type: int) -> int:
    """Pick knownhost typemask

    :param hostkey_type: Type of remote host key.
    :return: Typemask for checking in known_hosts file.
    :raise HostValidationError: If host key type is not supported.
    """
    try:
        keytype_mask = HOSTKEYTYPE_MAP[hostkey_type]
    except KeyError:
        raise excs.HostValidationError(f"Unsupported host key type {hostkey_type}")
    return LIBSSH2_KNOWNHOST_TYPE_PLAIN | LIBSSH2_KNOWNHOST_KEYENC_RAW | keytype_mask


def validate_hostkey(session: Session, host: str, port: int, knownhosts: str):
    """Validate remote host key against known_hosts file

    The file is only read, unknown hosts are rejected.

    :param session: SSH session after handshake.
    :param host: Remote host name as written in known_hosts.
    :param port: Remote host port.
    :param knownhosts: Path to known_hosts file.
    :raise HostValidationError: If host validation failed.
    """
    logger.info("Processing host validation...")
    hosts = session.knownhost_init()

    try:
        hosts_count = hosts.readfile(knownhosts)
        logger.info("Found %i hosts in hosts file %s", hosts_count, knownhosts)
    except ssh2.exceptions.KnownHostReadFileError as exc:
        raise excs.HostValidationError(
            f"Could't read knownhosts file in path {knownhosts}, file seems to be missing."
        ) from exc

    hostkey, keytype = session.hostkey()

    try:
        hosts.checkp(host.encode("utf-8"), port, hostkey, pick_knownhost_typemask(keytype))
    except ssh2.exceptions.KnownHostCheckNotFoundError as exc:
        raise excs.HostValidationError(
            f"Host {host} not found in knownhosts {knownhosts}."
        ) from exc
    except ssh2.exceptions.KnownHostCheckMisMatchError as exc:
        raise excs.HostValidationError(
            const.HOSTKEY_VERIFICATION_FAILED_MESSAGE.format(
                host=host,
                hostkey_hash=sha1(hostkey).hexdigest(),
                knownhosts=knownhosts,
            )
        ) from exc
    logger.info("Host validation passed.")


def make_socket(
    host: str,
    port: int = const.DEFAULT_PORT,
    connection_timeout: float = const.DEFAULT_CONNECT_TIMEOUT,
    force_keepalive: bool = False,
    keepalive_options: t.Optional[t.Dict[int, int]] = None,
) -> socket.socket:
    """
    Make prepared socket

    Creates socket connected to remote host. If needed sets
    keep alive socket options directly on the socket.

    :param host: Host to connect.
    :param port: Port number to use.
    :param connection_timeout: Connection timeout in seconds.
        Optional, by default is `10.0` seconds.
    :param force_keepalive: Flag for forcing socket keepalive options. Default is `False`.
    :param keepalive_options: Dictionary with keepalive options that will be used if
        `force_keepalive` is set to `True`. Keys of the dictionary is keepalive options constants
        from `socket` package. By default :data:`~const.KEEPALIVE_OPTIONS` are used.
    :raise HostResolveError: If host resolving was unsuccessfull.
    :raise SockTimeoutError: If connection timeout has been reached.
    :raise NetworkUnreachableError: If connection can't be established.
    :return: New connected socket.
    """
    logger.debug("Resolving %s:%i...", host, port)
    try:
        family, socktype, proto, _, address = socket.getaddrinfo(
            host, port, type=socket.SOCK_STREAM
        )[0]
    except socket.gaierror as exc:
        raise excs.HostResolveError(
            f"Failed to resolve host {host} into IP adress."
        ) from exc

    logger.debug("Creating new socket with timeout %f.", connection_timeout)
    sock = socket.socket(family, socktype, proto)
    sock.settimeout(connection_timeout)

    try:
        if force_keepalive:
            logger.info("Forcing socket keepalive configuration.")
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            options = const.KEEPALIVE_OPTIONS if keepalive_options is None else keepalive_options
            for key, value in options.items():
                sock.setsockopt(socket.IPPROTO_TCP, key, value)

        logger.debug("Trying to connect socket to %s:%i...", host, port)
        sock.connect(address)
    except socket.timeout as exc:
        sock.close()
        raise excs.SockTimeoutError(
            f"Connection timeout reached while trying "
            f"to establish connection to {host}:{port}"
        ) from exc
    except OSError as exc:
        sock.close()
        raise excs.NetworkUnreachableError(
            f"Failed to connect to {host}:{port}: {exc.strerror or exc}"
        ) from exc

    logger.debug("Socket successfully connected.")

    return sock


def make_ssh_session(
    sock: socket.socket,
    timeout: float = const.DEFAULT_CONNECT_TIMEOUT,
    use_keepalive: bool = False,
) -> Session:
    """
    Create ssh session from existing socket

    The socket is not closed here on failure, it stays owned by the caller.

    :param sock: Connected socket to use for SSH session.
    :param timeout: Handshake timeout in seconds, `0` or `None` means no timeout.
    :param use_keepalive: Enable SSH keepalive messages.
    :raise SessionInitError: If SSH session object can't be created.
    :raise SockTimeoutError: If remote host didn't answer in time.
    :raise HandshakeError: If SSH handshake fails.
    :return: SSH Session.
    """
    logger.debug("Creating new SSH session from provided socket.")
    try:
        ssh: Session = Session()
    except (ssh2.exceptions.SSH2Error, MemoryError) as exc:
        raise excs.SessionInitError("Failed to create SSH session") from exc

    ssh.set_blocking(True)
    ssh.set_timeout(int((timeout or 0) * 1000))
    if use_keepalive:
        logger.info("Settingup SSH session keepalive configuration.")
        ssh.keepalive_config(True, 120)

    logger.debug("Making SSH handshake...")
    try:
        ssh.handshake(sock)
    except ssh2.exceptions.Timeout as exc:
        raise excs.SockTimeoutError(
            "Connection timeout reached while waiting for SSH handshake"
        ) from exc
    except (
        ssh2.exceptions.SocketDisconnectError,
        ssh2.exceptions.SocketRecvError,
        ssh2.exceptions.SocketSendError,
    ) as exc:
        raise excs.HandshakeError(
            "Connection seems to be closed by remote host"
        ) from exc
    except ssh2.exceptions.SSH2Error as exc:
        raise excs.HandshakeError(
            f"SSH handshake failed with {type(exc).__name__}"
        ) from exc

    logger.debug("SSH handshake successfully made.")
    return ssh
