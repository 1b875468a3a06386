from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from retail_ledger.core.config import get_settings

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Build an engine; SQLite connections are opened per thread so fan-out reads stay isolated."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, pool_pre_ping=True, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@lru_cache
def get_db_engine() -> Engine:
    settings = get_settings()
    return create_db_engine(settings.database_url, echo=settings.SQL_ECHO)


@lru_cache
def get_session_factory() -> sessionmaker:
    return create_session_factory(get_db_engine())
