from collections.abc import Generator
from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from heatmap_tracker.api.dependencies import get_today
from heatmap_tracker.core.security import CurrentUser
from heatmap_tracker.core.security import get_current_user
from heatmap_tracker.db import Database
from heatmap_tracker.main import create_app
from heatmap_tracker.repository import upsert_google_user
from heatmap_tracker.settings import Settings


FIXED_TODAY = date(2026, 2, 20)


@pytest.fixture
def database() -> Generator[Database, None, None]:
    test_database = Database(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    test_database.create_all()
    yield test_database
    test_database.dispose()


@pytest.fixture
def db_session(database: Database) -> Generator[Session, None, None]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        environment="development",
        google_client_id="client-id",
        google_client_secret="client-secret",
        client_url="http://localhost:5173",
        rate_limit_per_minute=1000,
        sentry_dsn=None,
    )


@pytest.fixture
def app(settings: Settings, database: Database) -> FastAPI:
    application = create_app(settings=settings, database=database)
    application.dependency_overrides[get_today] = lambda: FIXED_TODAY
    return application


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def current_user(database: Database) -> CurrentUser:
    session = database.session()
    try:
        user = upsert_google_user(
            session, google_id="google-1", name="Ada", email="ada@example.com"
        )
        return CurrentUser.from_model(user)
    finally:
        session.close()


@pytest.fixture
def auth_client(
    app: FastAPI, current_user: CurrentUser
) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_current_user] = lambda: current_user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_current_user, None)
