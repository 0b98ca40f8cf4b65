# tests/conftest.py

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from app.core.config import Config
from app.db.database import build_engine, build_session_factory
from app.db.init_db import SchemaProvisioner
from app.main import create_app
from app.services.kv_store import KeyValueProvisioner, KeyValueStore, MemoryHashClient
from app.services.sql_store import SqlStore


@pytest.fixture
def db_url():
    """Temporary SQLite database file, removed after the test."""
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)
    os.remove(db_path)

    yield f"sqlite:///{db_path}"

    if os.path.exists(db_path):
        os.remove(db_path)


@pytest.fixture
def engine(db_url):
    engine = build_engine(db_url)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    SchemaProvisioner(engine).ensure()
    session = build_session_factory(engine)()
    yield SqlStore(session)
    session.close()


@pytest.fixture
def kv_store():
    client = MemoryHashClient()
    KeyValueProvisioner(client).ensure()
    return KeyValueStore(client)


@pytest.fixture(params=["sql", "memory"])
def store(request):
    """Run the test once against each storage backend."""
    if request.param == "sql":
        return request.getfixturevalue("sql_store")
    return request.getfixturevalue("kv_store")


@pytest.fixture(params=["sql", "memory"])
def client(request, db_url):
    """HTTP client for an app wired to each storage backend."""
    config = Config(database_url=db_url, storage_backend=request.param, cors_origins=["*"])
    with TestClient(create_app(config)) as test_client:
        yield test_client
