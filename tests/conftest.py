"""Global conftest"""
import socket
from random import choice
from string import ascii_letters

import pytest
from factory import Factory, Faker
from pytest_factoryboy import register

from sftp_fetch import const
from sftp_fetch.core import RemoteFileFetcher

from .fakes import FakeSession, FakeTransport


@pytest.fixture(scope="session")
def random_string():
    return lambda: "".join(choice(ascii_letters) for _ in range(10))


@pytest.fixture(scope="function")
def listener():
    """Socket accepting TCP connections but never speaking SSH"""
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    sock.listen()
    yield sock
    sock.close()


@register
class ClientConfigFactory(Factory):
    class Meta:
        model = const.ClientConfig

    host = Faker("ipv4")
    port = Faker("random_int", min=1, max=65535)
    username = Faker("user_name")
    credential = Faker("password")


@pytest.fixture(scope="function")
def fake_session():
    return FakeSession()


@pytest.fixture(scope="function")
def transport(fake_session):
    return FakeTransport(fake_session)


@pytest.fixture(scope="function")
def events():
    return []


@pytest.fixture(scope="function")
def make_fetcher(transport, events):
    def factory(**kwargs):
        options = dict(
            port=22,
            username="admin",
            password="secret",
            observer=lambda status, message: events.append((status, message)),
            socket_factory=transport.make_socket,
            session_factory=transport.make_ssh_session,
            knownhosts="/nonexistent/known_hosts",
        )
        options.update(kwargs)
        return RemoteFileFetcher(options.pop("host", "10.0.0.5"), **options)

    return factory
