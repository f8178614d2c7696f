from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, InterfaceError, DisconnectionError
from contextlib import contextmanager
from typing import Callable, TypeVar
import logging
import time

from .config import settings
from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Choose engine options based on database scheme
db_url = settings.DATABASE_URL
engine_kwargs = {}

if db_url.startswith("sqlite"):
    # SQLite specific connect args
    engine_kwargs.update({
        "connect_args": {"check_same_thread": False}
    })
else:
    # Better resiliency for managed Postgres
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_engine(db_url, echo=settings.DEBUG, **engine_kwargs)

def create_db_and_tables(bind=None):
    # Importing the models registers every table on SQLModel.metadata
    from .db import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)

def get_session():
    with Session(engine) as session:
        yield session

def ping(session: Session) -> bool:
    with storage_errors("ping"):
        session.exec(text("SELECT 1"))
    return True

@contextmanager
def storage_errors(operation: str):
    """Translate driver connectivity failures into StorageUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError, DisconnectionError) as e:
        logger.error(f"Storage unavailable during {operation}: {e}")
        raise StorageUnavailableError(f"Storage unavailable during {operation}") from e

def read_with_retry(fn: Callable[[], T], attempts: int = None, backoff_seconds: float = None) -> T:
    """Run an idempotent read, retrying only on StorageUnavailableError."""
    attempts = attempts or settings.READ_RETRY_ATTEMPTS
    backoff = settings.READ_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
    last_exc = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except StorageUnavailableError as e:
            last_exc = e
            logger.warning(f"Read retry {attempt}/{attempts} failed: {e.detail}")
            if attempt < attempts:
                time.sleep(backoff * attempt)
    raise last_exc
