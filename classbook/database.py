import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .auth import CallerContext, get_caller
from .config import (
    DATABASE_URL,
    DB_LOG_SLOW_QUERIES,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SLOW_QUERY_THRESHOLD,
    TENANT_SCHEMA_PREFIX,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory database
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": DB_POOL_RECYCLE,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
    }


try:
    engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))
    logger.info(f"✅ Database engine created ({engine.dialect.name})")
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

# Slow query logging for performance monitoring
if DB_LOG_SLOW_QUERIES:

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > DB_SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def tenant_schema(gym_id: int) -> str:
    return f"{TENANT_SCHEMA_PREFIX}{gym_id}"


def tenant_bind(gym_id: int) -> Engine:
    """
    Engine whose statements target the tenant's schema.

    Unqualified tables are rewritten to tenant_<gym_id> on PostgreSQL. Other
    dialects (SQLite in development and tests) have no schemas, so the plain
    engine is returned.
    """
    if engine.dialect.name != "postgresql":
        return engine
    return engine.execution_options(schema_translate_map={None: tenant_schema(gym_id)})


def open_tenant_session(gym_id: int) -> Session:
    return SessionLocal(bind=tenant_bind(gym_id))


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back everything on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def run_in_tenant(gym_id: int, work: Callable[[Session], T]) -> T:
    """Run one unit of work against a tenant and commit it atomically."""
    db = open_tenant_session(gym_id)
    try:
        with transaction(db):
            return work(db)
    finally:
        db.close()


def get_tenant_db(caller: CallerContext = Depends(get_caller)):
    db = open_tenant_session(caller.gym_id)
    try:
        yield db
    finally:
        db.close()
