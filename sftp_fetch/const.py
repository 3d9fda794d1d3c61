"""Constants of the package"""
import enum
import socket
import typing as t

DEFAULT_PORT = 22
#: Seconds to wait for TCP connect, handshake and authorization.
DEFAULT_CONNECT_TIMEOUT = 10.0
#: Seconds a single blocking SFTP read may stall before the session is considered dead.
DEFAULT_READ_TIMEOUT = 30.0

MIN_CHUNK_SIZE = 1024
MAX_CHUNK_SIZE = 65536
DEFAULT_CHUNK_SIZE = MAX_CHUNK_SIZE

# SFTP status codes (draft-ietf-secsh-filexfer-02, section 7)
SSH_FX_NO_SUCH_FILE = 2
SSH_FX_PERMISSION_DENIED = 3

KEEPALIVE_OPTIONS: t.Dict[int, int] = {
    socket.TCP_KEEPIDLE: 1,
    socket.TCP_KEEPINTVL: 3,
    socket.TCP_KEEPCNT: 3,
}

HOSTKEY_VERIFICATION_FAILED_MESSAGE = """
Host key verification for {host} failed.
Someone could be eavesdropping on you right now (man-in-the-middle attack)!
It is also possible that the host key has just been changed.
The fingerprint for the key sent by the remote host is {hostkey_hash}.
Add correct host key in {knownhosts} to get rid of this message.

If you are sure that the key has been changed and this is not MITM attack,
then you can delete the old key from known hosts with the following command:
    ssh-keygen -R {host} -f {knownhosts}
"""

DOWNLOAD_FAILED_MESSAGE = """
Download of {path} failed after {bytes_read} bytes.
Reason: {reason}
SSH session last error: {last_error}
"""


class ConnectionState(enum.Enum):
    """State of :class:`~sftp_fetch.core.RemoteFileFetcher`"""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class Status(enum.Enum):
    """Status notifications passed to the observer"""

    CONNECTED = "connected"
    HANDSHAKE_COMPLETE = "handshake_complete"
    AUTHENTICATED = "authenticated"
    SFTP_OPENED = "sftp_opened"
    DOWNLOADED = "downloaded"
    DISCONNECTED = "disconnected"


#: Observer signature: ``observer(status, message)``.
StatusObserver = t.Callable[[Status, str], None]


class ClientConfig(t.NamedTuple):
    """Connection settings of a single fetcher"""

    #: Remote host name or address
    host: str
    #: Remote host port
    port: int
    #: Login used for password authorization
    username: str
    #: Password used for password authorization
    credential: str

    def __repr__(self) -> str:
        return (
            f"ClientConfig(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, credential='***')"
        )
