import io
import os

# Must be set before the gallery package reads its settings
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from PIL import Image
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from gallery.database import create_db_and_tables
from gallery.infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def user(session):
    return SqlAccountRepository(session).create("alice@example.com", "Alice")


@pytest.fixture
def other_user(session):
    return SqlAccountRepository(session).create("bob@example.com", "Bob")


def make_image_bytes(color=(200, 30, 30), size=(32, 24), fmt="PNG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_image_bytes()
