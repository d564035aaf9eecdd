"""
Pytest fixtures for testing
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from famboard.infrastructure.db import models  # noqa: F401  (registers tables)
from famboard.infrastructure.db.models import FamilyMember, Reward
from famboard.infrastructure.db.session import Base, get_db


def _enable_savepoints(engine) -> None:
    """pysqlite: let SQLAlchemy drive BEGIN so SAVEPOINTs nest properly"""

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every connection (TestClient runs handlers in a threadpool)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """
    File-backed SQLite with real per-thread connections, for concurrency tests

    Uses the stock pysqlite driver as the app does: reads outside a write
    hold no lock across the in-process locks.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'famboard.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_engine):
    """TestClient whose requests use the test database"""
    from famboard.main import app

    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)

    def _get_test_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# --- Family fixtures ---

@pytest.fixture
def parent(db_session) -> FamilyMember:
    member = FamilyMember(name="Mom", role="PARENT", color="#3B82F6", avatar="M", avatar_type="initial")
    db_session.add(member)
    db_session.commit()
    return member


@pytest.fixture
def child(db_session) -> FamilyMember:
    member = FamilyMember(name="Kid", role="CHILD", color="#10B981", avatar="K", avatar_type="initial")
    db_session.add(member)
    db_session.commit()
    return member


@pytest.fixture
def second_child(db_session) -> FamilyMember:
    member = FamilyMember(name="Sib", role="CHILD", color="#F59E0B", avatar="S", avatar_type="initial")
    db_session.add(member)
    db_session.commit()
    return member


@pytest.fixture
def reward(db_session) -> Reward:
    row = Reward(name="Movie night", points_cost=20, is_active=True, is_cash_reward=False)
    db_session.add(row)
    db_session.commit()
    return row
