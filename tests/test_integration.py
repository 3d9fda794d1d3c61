"""Tests against a real SFTP server"""
import pytest

from sftp_fetch import Status
from sftp_fetch import exceptions as excs
from sftp_fetch.core import RemoteFileFetcher

CONTENT = {
    "pub": {
        "motd.txt": "Welcome!\n",
        "big.txt": "0123456789abcdef" * 4097,
    },
}


@pytest.fixture(scope="function")
def fetcher(sftpserver, events):
    with sftpserver.serve_content(CONTENT):
        fetcher = RemoteFileFetcher(
            sftpserver.host,
            port=sftpserver.port,
            username="admin",
            password="secret",
            observer=lambda status, message: events.append(status),
            read_timeout=5,
        )
        yield fetcher
        fetcher.disconnect()


def test_download_file(fetcher, events):
    fetcher.connect()
    assert fetcher.is_connected
    assert fetcher.download_file("/pub/motd.txt") == b"Welcome!\n"
    assert fetcher.download_file("/pub/big.txt") == b"0123456789abcdef" * 4097
    assert events[:3] == [Status.CONNECTED, Status.HANDSHAKE_COMPLETE, Status.AUTHENTICATED]

    fetcher.disconnect()
    assert not fetcher.is_connected
    assert events[-1] is Status.DISCONNECTED


def test_download_missing_file(fetcher):
    # the server opens any path, reading a missing one fails
    fetcher.connect()
    with pytest.raises(excs.ReadError) as exc_info:
        fetcher.download_file("/pub/missing.txt")
    assert exc_info.value.bytes_read == 0
    assert fetcher.session_alive
    assert fetcher.download_file("/pub/motd.txt") == b"Welcome!\n"
