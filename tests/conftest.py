import os

# 1. Set required env vars BEFORE app imports to satisfy pydantic-settings Fail Fast
os.environ["DATABASE_URL"] = "sqlite:///./dummy.db"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["ADMIN_API_KEY"] = "test-admin-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# 2. Import app modules safely
import main as app_module
from app.api.deps import get_notifier
from app.core.database import enable_sqlite_foreign_keys, get_db
from app.models import Base


class RecordingNotifier:
    """Captures (recipient, template, data) instead of delivering anything."""

    def __init__(self):
        self.sent = []

    def send(self, recipient, template, data):
        self.sent.append((recipient, template, data))

    def templates(self):
        return [template for _, template, _ in self.sent]


@pytest.fixture
def engine(tmp_path):
    # File-backed so several sessions (and threads) can share it
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def serialized_engine(tmp_path):
    """
    SQLite engine whose transactions start with BEGIN IMMEDIATE, so concurrent
    writers queue on the database lock the way row locks queue them on PostgreSQL.
    """
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'serialized.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(test_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        # Hand transaction control to SQLAlchemy instead of pysqlite
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app_module.app.dependency_overrides[get_db] = override_get_db
    app_module.app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app_module.app)
    finally:
        app_module.app.dependency_overrides.clear()
