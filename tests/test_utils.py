"""Tests for sftp_fetch.utils module"""
import logging
import os
import socket
import time
from tempfile import TemporaryDirectory

import pytest
import ssh2.exceptions
from ssh2.session import LIBSSH2_HOSTKEY_TYPE_RSA, Session

from sftp_fetch import const
from sftp_fetch import exceptions as excs
from sftp_fetch import utils

from .fakes import FakeKnownHosts, FakeSession, FakeSocket


def test_init_library_runs_once(monkeypatch):
    monkeypatch.setattr(utils, "_initialized", False)
    assert utils.init_library() is True
    assert utils.init_library() is False
    assert utils.init_library() is False


def test_validate_config(client_config):
    utils.validate_config(client_config)

    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(host=""))
    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(port=0))
    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(port=65536))
    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(port="22"))
    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(username=""))
    with pytest.raises(ValueError):
        utils.validate_config(client_config._replace(credential=None))

    utils.validate_config(client_config._replace(port=1, credential=""))
    utils.validate_config(client_config._replace(port=65535))


def test_config_repr_masks_credential():
    config = const.ClientConfig("10.0.0.5", 22, "admin", "hunter2")
    assert "hunter2" not in repr(config)
    assert "admin" in repr(config)
    assert config.credential == "hunter2"


def test_log_status(caplog):
    with caplog.at_level(logging.INFO, logger="sftp_fetch.utils"):
        utils.log_status(const.Status.CONNECTED, "Connected to 10.0.0.5:22")
    assert "[connected] Connected to 10.0.0.5:22" in caplog.text


def test_find_knownhosts(monkeypatch, random_string):
    tempdir = TemporaryDirectory()
    knownhosts = os.path.join(tempdir.name, ".ssh", "known_hosts")

    randstr = random_string()
    monkeypatch.setattr(utils.os.path, "expanduser", lambda *a, **k: knownhosts)
    monkeypatch.setattr(utils, "getuser", lambda: randstr)
    assert utils.find_knownhosts() == f"/home/{randstr}/.ssh/known_hosts"

    os.makedirs(knownhosts)
    assert utils.find_knownhosts() == knownhosts


def test_pick_knownhost_typemask():
    assert utils.pick_knownhost_typemask(LIBSSH2_HOSTKEY_TYPE_RSA)
    with pytest.raises(excs.HostValidationError):
        utils.pick_knownhost_typemask(-1)


def test_make_socket(listener):
    sock = utils.make_socket(*listener.getsockname(), force_keepalive=True)
    assert isinstance(sock, socket.socket)
    assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) == 1
    assert sock.gettimeout() == const.DEFAULT_CONNECT_TIMEOUT
    sock.close()


def test_make_socket_resolve_error():
    with pytest.raises(excs.HostResolveError):
        utils.make_socket("invalid.hostname")


def test_make_socket_refused():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    with pytest.raises(excs.NetworkUnreachableError):
        utils.make_socket("127.0.0.1", port)


def test_make_socket_timeout(monkeypatch):
    def connect(self, address):
        raise socket.timeout("timed out")

    monkeypatch.setattr(socket.socket, "connect", connect)
    with pytest.raises(excs.SockTimeoutError):
        utils.make_socket("127.0.0.1", 22, connection_timeout=0.1)


def test_make_ssh_session_timeout(listener):
    sock = utils.make_socket(*listener.getsockname())
    started = time.monotonic()
    with pytest.raises(excs.SockTimeoutError):
        utils.make_ssh_session(sock, timeout=0.5)
    assert time.monotonic() - started < 5
    sock.close()


def test_make_ssh_session_closed_by_remote(listener):
    sock = utils.make_socket(*listener.getsockname())
    conn, _ = listener.accept()
    conn.close()
    with pytest.raises(excs.ConnectError) as exc_info:
        utils.make_ssh_session(sock, timeout=2)
    assert isinstance(exc_info.value, (excs.HandshakeError, excs.SockTimeoutError))
    sock.close()


def test_make_ssh_session(sftpserver):
    with sftpserver.serve_content({}):
        sock = utils.make_socket(sftpserver.host, sftpserver.port)
        session = utils.make_ssh_session(sock)
        assert isinstance(session, Session)
        session.disconnect()
        sock.close()


@pytest.mark.parametrize(
    "knownhosts",
    [
        FakeKnownHosts(None),
        FakeKnownHosts("10.0.0.6"),
        FakeKnownHosts("10.0.0.5", key=b"another-key"),
    ],
)
def test_validate_hostkey_fails(knownhosts):
    session = FakeSession()
    session.knownhosts = knownhosts
    with pytest.raises(excs.HostValidationError):
        utils.validate_hostkey(session, "10.0.0.5", 22, "/tmp/known_hosts")


def test_validate_hostkey():
    session = FakeSession()
    session.knownhosts = FakeKnownHosts("10.0.0.5")
    utils.validate_hostkey(session, "10.0.0.5", 22, "/tmp/known_hosts")


def test_make_ssh_session_init_failure(monkeypatch):
    def broken_session():
        raise ssh2.exceptions.SSH2Error()

    monkeypatch.setattr(utils, "Session", broken_session)
    sock = FakeSocket()
    with pytest.raises(excs.SessionInitError):
        utils.make_ssh_session(sock)
    assert not sock.closed
