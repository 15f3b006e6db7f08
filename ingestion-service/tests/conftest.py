import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from database import get_db
from main import app


class InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCollection:
    """
    Collezione in memoria con la sola insert_one asincrona usata dal servizio.
    """
    def __init__(self, name: str, fail: bool = False):
        self.name = name
        self.fail = fail
        self.documents = []

    async def insert_one(self, document: dict):
        if self.fail:
            raise RuntimeError("database unreachable")
        document = {"_id": ObjectId(), **document}
        self.documents.append(document)
        return InsertResult(document["_id"])


class FakeDatabase:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.collections = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, fail=self.fail)
        return self.collections[name]

    def all_documents(self) -> list:
        return [doc for collection in self.collections.values() for doc in collection.documents]


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def client(fake_db, tmp_path, monkeypatch):
    # Le immagini finiscono in tmp_path/uploads
    monkeypatch.chdir(tmp_path)
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def valid_payload():
    return {
        "field_id": "Field_01",
        "soil_moisture": "42.5",
        "temperature": 21,
        "humidity": 60,
        "image_base64": "QQ==",
    }


@pytest.fixture
def failing_db():
    return FakeDatabase(fail=True)

