"""Pytest configuration and shared fixtures."""

import os

# bcrypt is deliberately slow; must be set before museumtix.config is imported
os.environ.setdefault("PASSWORD_SCHEMES", '["pbkdf2_sha256"]')
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from museumtix.config import get_settings
from museumtix.main import create_app
from museumtix.storage.adapter import StorageAdapter
from museumtix.storage.memory import MemStorage
from museumtix.storage.mongo import MongoStorage
from museumtix.storage.seed import ADMIN_PASSWORD, ADMIN_USERNAME
from museumtix.storage.sql import DatabaseStorage


def tomorrow() -> str:
    return (datetime.utcnow() + timedelta(days=1)).replace(microsecond=0).isoformat()


def login(client: TestClient, username: str, password: str) -> dict:
    """Log in and return an Authorization header for the session"""
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


def register(client: TestClient, username: str, password: str = "secret123") -> dict:
    response = client.post("/api/register", json={
        "username": username,
        "password": password,
        "email": f"{username}@museum.org",
        "fullName": username.capitalize(),
    })
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def memory_storage() -> MemStorage:
    return MemStorage()


@pytest.fixture
def sql_storage():
    storage = DatabaseStorage.from_url("sqlite://")
    storage.initialize_database()
    yield storage
    storage.close()


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["museumtix-test"]


@pytest.fixture
def mongo_storage(mongo_db) -> MongoStorage:
    storage = MongoStorage(mongo_db)
    storage.initialize_database()
    return storage


@pytest.fixture
def adapter_storage(mongo_db) -> StorageAdapter:
    storage = StorageAdapter(MongoStorage(mongo_db))
    storage.initialize_database()
    return storage


@pytest.fixture(params=["memory", "sql", "mongo"])
def storage(request):
    """Every backend behind the integer-identifier interface"""
    return request.getfixturevalue({
        "memory": "memory_storage",
        "sql": "sql_storage",
        "mongo": "adapter_storage",
    }[request.param])


@pytest.fixture
def client(memory_storage):
    app = create_app(settings=get_settings(), storage=memory_storage)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client) -> dict:
    return login(client, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def alice_headers(client) -> dict:
    return register(client, "alice")


@pytest.fixture
def bob_headers(client) -> dict:
    return register(client, "bob")
