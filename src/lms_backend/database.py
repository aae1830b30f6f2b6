import os
import logging
from functools import lru_cache
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session

logger = logging.getLogger(__name__)

POSTGRES_URL = os.environ.get("POSTGRES_URL")
POSTGRES_USER = os.environ.get("POSTGRES_USER")
POSTGRES_PASSWORD = os.environ.get("POSTGRES_PASSWORD")
POSTGRES_DB = os.environ.get("POSTGRES_DB")

_database_options = {
    "pool_pre_ping": True,
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
    "pool_recycle": 300
}

def database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if url:
        return url
    return f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_URL}/{POSTGRES_DB}"

@lru_cache(maxsize=1)
def get_engine() -> Engine:
    url = database_url()
    if url.startswith("sqlite"):
        return create_engine(url)
    return create_engine(url, **_database_options)

@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

def get_db() -> Generator[Session, None, None]:

    db = _session_factory()()

    try:
        yield db
    except OperationalError:
        logger.error("Database connection failed")
        db.rollback()
        raise
    finally:
        db.close()
