"""
Shared pytest fixtures.

Uses a SQLite database file so no Postgres is required for tests.
Tables are emptied before every test: leaderboards and records are
population-wide, so rows from one test would change another's ranking.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_sadhana.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker

from sadhana.db.base import Base, get_db
from sadhana.main import app
from sadhana.models import Entity, Submission

SQLITE_URL = "sqlite:///./test_sadhana.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    db = TestingSessionLocal()
    try:
        db.execute(delete(Submission))
        db.execute(delete(Entity))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
