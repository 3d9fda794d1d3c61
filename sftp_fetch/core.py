"""Remote file fetcher"""
import logging
import typing as t
from hashlib import sha1

import ssh2.exceptions

from . import auth, const, utils
from . import exceptions as excs
from .session import SessionHandle, SFTPChannel

logger = logging.getLogger(__name__)


class RemoteFileFetcher:
    """
    Single file SFTP downloader

    One instance owns at most one SSH session. Instances are not
    thread-safe, only one operation may run at a time.

    .. note::
        All arguments except `host` are keyword-only.

    :param host: Host name to connect.
    :param port: Port to connect.
    :param username: Username that will be used for username/password authorization.
    :param password: Password that will be used for username/password authorization.
    :param observer: Callable receiving :class:`~const.Status` notifications,
        by default notifications are written to the log.
    :param chunk_size: Size of a single SFTP read in bytes.
    :param max_size: Maximum size of downloaded file in bytes, `None` means no limit.
    :param connect_timeout: Timeout in seconds for connect, handshake and authorization.
    :param read_timeout: Timeout in seconds for a single SFTP read after connect.
        `None` or `0` disables it.
    :param validate_host: If set to `True` host key is checked against `knownhosts`.
    :param knownhosts: Path to *known_hosts* file. If not provided an attempt will
        be made to find the file in common places.
    :param session_keepalive: If set to `True` SSH session keepalive configuration will be used.
    :param force_socket_keepalive: If set to `True` keepalive options for socket will be forced.
    :param socket_factory: Callable making connected socket, see :func:`~utils.make_socket`.
    :param session_factory: Callable making SSH session over socket,
        see :func:`~utils.make_ssh_session`.
    """

    def __init__(
        self,
        host: str,
        *,
        port: int = const.DEFAULT_PORT,
        username: str,
        password: str,
        observer: t.Optional[const.StatusObserver] = None,
        chunk_size: int = const.DEFAULT_CHUNK_SIZE,
        max_size: t.Optional[int] = None,
        connect_timeout: float = const.DEFAULT_CONNECT_TIMEOUT,
        read_timeout: t.Optional[float] = const.DEFAULT_READ_TIMEOUT,
        validate_host: bool = False,
        knownhosts: t.Optional[str] = None,
        session_keepalive: bool = False,
        force_socket_keepalive: bool = False,
        socket_factory: t.Callable = utils.make_socket,
        session_factory: t.Callable = utils.make_ssh_session,
    ):
        config = const.ClientConfig(host, port, username, password)
        utils.validate_config(config)
        if not const.MIN_CHUNK_SIZE <= chunk_size <= const.MAX_CHUNK_SIZE:
            raise ValueError(
                f"Chunk size must be in range {const.MIN_CHUNK_SIZE}-"
                f"{const.MAX_CHUNK_SIZE}, got {chunk_size}."
            )
        if max_size is not None and max_size < 0:
            raise ValueError(f"Max size can't be negative, got {max_size}.")
        if connect_timeout <= 0:
            raise ValueError("Connect timeout must be positive.")
        if read_timeout is not None and read_timeout < 0:
            raise ValueError(f"Read timeout can't be negative, got {read_timeout}.")

        self._config = config
        #: Status notifications receiver
        self.observer: const.StatusObserver = observer or utils.log_status
        #: Bytes requested by a single SFTP read
        self.chunk_size: int = chunk_size
        #: Download size limit
        self.max_size: t.Optional[int] = max_size
        #: Timeout for connect, handshake and authorization
        self.connect_timeout: float = connect_timeout
        #: Stall timeout for established session
        self.read_timeout: t.Optional[float] = read_timeout
        #: Flag to perform host validation or not.
        self.validate_host: bool = validate_host
        #: Path to known_hosts file.
        self.knownhosts: str = (
            knownhosts if knownhosts is not None else utils.find_knownhosts()
        )
        #: Use SSH session keepalive
        self.session_keepalive: bool = session_keepalive
        #: Force socket keepalive
        self.force_socket_keepalive: bool = force_socket_keepalive
        #: Authorization handler
        self.auth_handler = auth.PasswordAuthorization(username, password)
        self._socket_factory = socket_factory
        self._session_factory = session_factory
        self._state = const.ConnectionState.DISCONNECTED
        self._handle: t.Optional[SessionHandle] = None
        self._channel: t.Optional[SFTPChannel] = None

    @classmethod
    def from_config(cls, config: const.ClientConfig, **options) -> "RemoteFileFetcher":
        """Make fetcher from :class:`~const.ClientConfig`

        :param config: Connection settings.
        :param options: Any other keyword argument of the constructor.
        """
        return cls(
            config.host,
            port=config.port,
            username=config.username,
            password=config.credential,
            **options,
        )

    def __repr__(self) -> str:
        config = self._config
        return (
            f"<RemoteFileFetcher {config.username}@{config.host}:{config.port} "
            f"{self._state.value}>"
        )

    @property
    def config(self) -> const.ClientConfig:
        """Connection settings"""  # noqa: D401
        return self._config

    @property
    def state(self) -> const.ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is const.ConnectionState.CONNECTED

    @property
    def session_alive(self) -> bool:
        """Connected and no transport failure was seen since"""
        return self.is_connected and self._handle is not None and self._handle.alive

    def _notify(self, status: const.Status, message: str):
        self.observer(status, message)

    def connect(self):
        """Connect and authorize

        Every resource acquired before a failure is released
        and the fetcher stays disconnected.

        :raise ConnectError: If already connected or any connection step failed.
        """
        if self._handle is not None:
            raise excs.ConnectError("Already connected, disconnect first")

        utils.init_library()
        host, port = self._config.host, self._config.port

        sock = self._socket_factory(
            host,
            port,
            connection_timeout=self.connect_timeout,
            force_keepalive=self.force_socket_keepalive,
        )
        try:
            self._notify(const.Status.CONNECTED, f"Connected to {host}:{port}")
            session = self._session_factory(
                sock,
                timeout=self.connect_timeout,
                use_keepalive=self.session_keepalive,
            )
        except Exception:
            sock.close()
            raise

        handle = SessionHandle(sock, session)
        try:
            self._notify(const.Status.HANDSHAKE_COMPLETE, "SSH handshake complete")
            if self.validate_host:
                utils.validate_hostkey(session, host, port, self.knownhosts)
            self.auth_handler.auth(session)
            session.set_timeout(int((self.read_timeout or 0) * 1000))
            self._notify(
                const.Status.AUTHENTICATED, f"Authenticated as {self._config.username}"
            )
        except Exception:
            handle.close()
            raise

        self._handle = handle
        self._state = const.ConnectionState.CONNECTED

    def disconnect(self):
        """Disconnect current session

        Safe to call any number of times, never raises.
        """
        torn_down = False
        if self._channel is not None:
            self._channel.close()
            self._channel = None
            torn_down = True
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            torn_down = True
        self._state = const.ConnectionState.DISCONNECTED

        if torn_down:
            try:
                self._notify(
                    const.Status.DISCONNECTED,
                    f"Disconnected from {self._config.host}:{self._config.port}",
                )
            except Exception:
                logger.exception("Status observer failed on disconnect.")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    def _require_session(self, path: str) -> SessionHandle:
        if self._handle is None:
            raise excs.NotConnectedError(f"Can't fetch {path}: not connected")
        if not self._handle.alive:
            raise excs.SessionDeadError(
                path, 0, "session was dropped earlier, reconnect is required"
            )
        return self._handle

    @property
    def hostkey_hash(self) -> str:
        """SHA1 digest of remote host key"""
        hostkey, _ = self._require_session("<hostkey>").session.hostkey()
        return sha1(hostkey).hexdigest()

    def _read_chunks(
        self, handle: SessionHandle, fh, path: str, write: t.Callable[[bytes], t.Any]
    ) -> int:
        bytes_read = 0
        while True:
            try:
                rc, data = fh.read(self.chunk_size)
            except utils.SESSION_DROP_ERRORS as exc:
                handle.mark_dead()
                raise excs.SessionDeadError(
                    path,
                    bytes_read,
                    f"transport failed with {type(exc).__name__}",
                    handle.last_error,
                ) from exc
            except ssh2.exceptions.SSH2Error as exc:
                raise excs.ReadError(
                    path,
                    bytes_read,
                    f"read failed with {type(exc).__name__}",
                    handle.last_error,
                ) from exc

            if rc < 0:
                raise excs.ReadError(
                    path, bytes_read, f"read returned error code {rc}", handle.last_error
                )
            if rc == 0:
                return bytes_read
            if self.max_size is not None and bytes_read + rc > self.max_size:
                raise excs.FileTooLargeError(path, bytes_read, self.max_size)

            write(data)
            bytes_read += rc

    def _transfer(self, path: str, write: t.Callable[[bytes], t.Any]) -> int:
        handle = self._require_session(path)
        if not path:
            raise ValueError("Remote path can't be empty.")

        with SFTPChannel(handle) as channel:
            self._channel = channel
            try:
                self._notify(const.Status.SFTP_OPENED, "SFTP subchannel opened")
                fh = channel.open_for_read(path)
                try:
                    return self._read_chunks(handle, fh, path, write)
                finally:
                    try:
                        fh.close()
                    except ssh2.exceptions.SSH2Error as exc:
                        logger.warning(
                            "Ignoring error on closing %s: %s", path, type(exc).__name__
                        )
            finally:
                self._channel = None

    def download_file(self, path: str) -> bytes:
        """Download file into memory

        :param path: Remote file path.
        :return: File content.
        :raise NotConnectedError: If fetcher isn't connected.
        :raise SessionDeadError: If session was dropped, now or earlier.
        :raise SFTPInitError: If SFTP subchannel can't be opened.
        :raise RemoteFileNotFoundError: If file can't be found.
        :raise PermissionDeniedError: If server denied access to the file.
        :raise ReadError: If a read failed, nothing is returned in that case.
        :raise FileTooLargeError: If file is larger than `max_size`.
        """
        buf = bytearray()
        size = self._transfer(path, buf.extend)
        self._notify(const.Status.DOWNLOADED, f"Downloaded {size} bytes from {path}")
        return bytes(buf)

    def get(self, path: str, fh: t.IO[bytes]) -> int:
        """Download file into file object

        On failure the bytes already received stay written to `fh`.

        :param path: Remote file path.
        :param fh: Binary file object to download into.
        :return: Count of written bytes.
        :raise DownloadError: Same as :meth:`download_file`.
        """
        size = self._transfer(path, fh.write)
        self._notify(const.Status.DOWNLOADED, f"Downloaded {size} bytes from {path}")
        return size
