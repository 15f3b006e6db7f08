import asyncio
import pytest
from pymongo.errors import ServerSelectionTimeoutError
import database
from database import MissingDatabaseURIError, connect


class FakeMongoClient:
    """
    Client MongoDB finto: registra le chiamate a command e close.
    """
    def __init__(self, uri, reachable=True, **kwargs):
        self.uri = uri
        self.kwargs = kwargs
        self.reachable = reachable
        self.commands = []
        self.closed = False

    def __getitem__(self, name):
        return self

    async def command(self, name):
        self.commands.append(name)
        if not self.reachable:
            raise ServerSelectionTimeoutError("no servers available")
        return {"ok": 1.0}

    async def close(self):
        self.closed = True


def _install_fake_client(monkeypatch, reachable):
    created = []

    def factory(uri, **kwargs):
        client = FakeMongoClient(uri, reachable=reachable, **kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(database, "AsyncMongoClient", factory)
    return created


def test_connect_requires_uri():
    with pytest.raises(MissingDatabaseURIError):
        asyncio.run(connect(uri=None))

    with pytest.raises(MissingDatabaseURIError):
        asyncio.run(connect(uri=""))


def test_connect_pings_server(monkeypatch):
    created = _install_fake_client(monkeypatch, reachable=True)

    client = asyncio.run(connect(uri="mongodb://localhost:27017", database_name="AgriVision_IoT"))

    assert client is created[0]
    assert client.commands == ["ping"]
    assert "serverSelectionTimeoutMS" in client.kwargs
    assert client.closed is False


def test_connect_closes_client_when_ping_fails(monkeypatch):
    created = _install_fake_client(monkeypatch, reachable=False)

    with pytest.raises(ServerSelectionTimeoutError):
        asyncio.run(connect(uri="mongodb://unreachable:27017"))

    assert len(created) == 1
    assert created[0].closed is True
