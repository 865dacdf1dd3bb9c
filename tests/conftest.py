from __future__ import annotations

import os

# Must be set before app.core.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.chat import models as chat_models  # noqa: F401
from app.chat import ConversationLifecycleManager, MessageRelay, SqlUserDirectory
from app.core.database import get_db, get_session_factory
from app.models import Base, User, UserRole


def make_session_factory(url: str = "sqlite+pysqlite:///:memory:", **engine_kwargs) -> sessionmaker[Session]:
    if url.endswith(":memory:"):
        engine_kwargs.setdefault("poolclass", StaticPool)
    engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, future=True, **engine_kwargs)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def seed_users(factory: sessionmaker[Session]) -> SimpleNamespace:
    people = {
        "candidate": ("jane@example.com", "Jane", "Doe", UserRole.CANDIDATE),
        "candidate2": ("john@example.com", "John", "Roe", UserRole.CANDIDATE),
        "admin": ("alex@example.com", "Alex", "Admin", UserRole.ADMIN),
        "admin2": ("sam@example.com", "Sam", "Boss", UserRole.ADMIN),
    }
    ids = {}
    with factory() as session:
        for key, (email, first, last, role) in people.items():
            user = User(email=email, first_name=first, last_name=last, role=role.value)
            session.add(user)
            session.flush()
            ids[key] = user.id
        session.commit()
    return SimpleNamespace(**ids)


@pytest.fixture()
def session_factory() -> sessionmaker[Session]:
    factory = make_session_factory()
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture()
def users(session_factory):
    return seed_users(session_factory)


@pytest.fixture()
def db_session(session_factory, users):
    with session_factory() as session:
        yield session


@pytest.fixture()
def directory() -> SqlUserDirectory:
    return SqlUserDirectory()


@pytest.fixture()
def lifecycle(directory) -> ConversationLifecycleManager:
    return ConversationLifecycleManager(directory)


@pytest.fixture()
def relay(directory) -> MessageRelay:
    return MessageRelay(directory, max_length=200)


@pytest.fixture()
def app(session_factory, users):
    from main import create_app

    application = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
