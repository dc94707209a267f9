import os
import uuid

os.environ.setdefault("AUTH_SECRET_KEY", "test-signing-key-with-enough-length-for-hs256")
os.environ.setdefault("ALLOWED_HOSTS", "testserver,localhost")

import pytest
from fastapi.testclient import TestClient
from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath

import AuthAndUser as auth
from database import get_firestore_client
from main import app


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    async def get(self):
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    async def set(self, data):
        self._collection.docs[self.id] = dict(data)

    async def update(self, data):
        if self.id not in self._collection.docs:
            raise KeyError(self.id)
        self._collection.docs[self.id].update(data)

    async def delete(self):
        self._collection.docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit=None):
        self._collection = collection
        self._filters = list(filters)
        self._orders = list(orders)
        self._limit = limit

    def where(self, filter):
        return FakeQuery(self._collection, self._filters + [filter], self._orders, self._limit)

    def order_by(self, field, direction=firestore.Query.ASCENDING):
        return FakeQuery(self._collection, self._filters, self._orders + [(field, direction)], self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, self._orders, count)

    async def stream(self):
        items = list(self._collection.docs.items())
        for field_filter in self._filters:
            assert field_filter.op_string == "=="
            items = [
                (doc_id, data) for doc_id, data in items
                if data.get(field_filter.field_path) == field_filter.value
            ]
        # Stable sorts applied from the least significant key up.
        for field, direction in reversed(self._orders):
            items.sort(
                key=lambda item, field=field: item[0] if field == FieldPath.document_id() else item[1][field],
                reverse=direction == firestore.Query.DESCENDING,
            )
        if self._limit is not None:
            items = items[:self._limit]
        for doc_id, data in items:
            yield FakeSnapshot(doc_id, dict(data))


class FakeCollection(FakeQuery):
    def __init__(self):
        self.docs = {}
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocumentReference(self, doc_id or uuid.uuid4().hex[:20])


class FakeFirestore:
    """The slice of ``firestore.AsyncClient`` the service touches, kept in memory."""

    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def hashed_passwords():
    return {
        user_id: auth.get_password_hash(f"{user_id}-password")
        for user_id in ("u1", "u2", "admin")
    }


@pytest.fixture
def db(hashed_passwords):
    fake = FakeFirestore()
    users = fake.collection("users")
    users.docs["u1"] = {
        "username": "alice",
        "email": "alice@example.com",
        "hashed_password": hashed_passwords["u1"],
        "is_admin": False,
    }
    users.docs["u2"] = {
        "username": "bob",
        "email": "bob@example.com",
        "hashed_password": hashed_passwords["u2"],
        "is_admin": False,
    }
    users.docs["admin"] = {
        "username": "root",
        "email": "root@example.com",
        "hashed_password": hashed_passwords["admin"],
        "is_admin": True,
    }
    return fake


@pytest.fixture
def client(db):
    app.dependency_overrides[get_firestore_client] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Makes every following request act as the given user."""
    def _login_as(user_id, username, is_admin=False):
        user = auth.User(id=user_id, username=username, is_admin=is_admin)
        app.dependency_overrides[auth.get_current_active_user] = lambda: user
        return user
    return _login_as
