"""Database Module with Monadic Error Handling

Async session management and Result-returning query helpers.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, TypeVar
from uuid import UUID as PyUUID

from sqlalchemy import event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator, CHAR
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from core.config import settings
from core.errors import (
    AppError,
    Ok,
    Err,
    Result,
    not_found,
    DatabaseErrorMapper,
)
from core.logging import db_logger

T = TypeVar("T")


class GUID(TypeDecorator):
    """Platform-agnostic GUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as CHAR(32).
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value
        if isinstance(value, PyUUID):
            return value.hex
        return PyUUID(value).hex

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, PyUUID):
            return value
        return PyUUID(value)


def utcnow() -> datetime:
    """Naive UTC timestamp for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


engine_kwargs = {
    "echo": settings.LOG_SQL,
}

if "sqlite" not in settings.DATABASE_URL:
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

_db_mapper = DatabaseErrorMapper("database")
log = db_logger()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency that yields a database session."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Context manager for a database session (scripts)."""
    async with AsyncSessionLocal() as session:
        yield session


async def fetch_one(
    session: AsyncSession,
    model: type[T],
    id: str | PyUUID,
    entity_name: str | None = None,
) -> Result[T, AppError]:
    """Fetch single entity by primary key.

    Returns:
        Ok(entity) if found
        Err(not_found) if not found
        Err(db_error) on database failure
    """
    name = entity_name or model.__name__
    try:
        entity = await session.get(model, id)
    except SQLAlchemyError as e:
        return Err(_db_mapper.map_exception(e))
    if entity is None:
        return not_found(name, str(id), origin="database.fetch_one")
    return Ok(entity)


async def fetch_one_by(
    session: AsyncSession,
    model: type[T],
    entity_name: str | None = None,
    **filters,
) -> Result[T, AppError]:
    """Fetch the first entity matching column filters."""
    name = entity_name or model.__name__
    try:
        query = select(model)
        for key, value in filters.items():
            query = query.where(getattr(model, key) == value)
        result = await session.execute(query.limit(1))
        entity = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        return Err(_db_mapper.map_exception(e))
    if entity is None:
        return not_found(name, origin="database.fetch_one_by")
    return Ok(entity)


async def commit(session: AsyncSession) -> Result[None, AppError]:
    """Commit the session, rolling back and mapping the error on failure."""
    try:
        await session.commit()
        return Ok(None)
    except SQLAlchemyError as e:
        await session.rollback()
        error = _db_mapper.map_exception(e)
        log.error("commit_failed", code=error.code.name, error=str(e))
        return Err(error)


def enable_sqlite_foreign_keys(async_engine) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE works under SQLite."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)
