"""Error Boundary Mappers

Each module boundary maps the exceptions raised beneath it into a single
``AppError`` shape before they reach callers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from .types import AppError, ErrorCode, ErrorContext
from .builders import (
    db_connection_failed,
    duplicate_key,
    internal_error,
    source_error,
    transaction_failed,
)

T = TypeVar("T")


class ErrorMapper(ABC, Generic[T]):
    """Abstract base for error mappers at module boundaries."""

    @abstractmethod
    def map_exception(self, exc: Exception) -> AppError:
        """Map an exception raised below the boundary."""


class DatabaseErrorMapper(ErrorMapper[T]):
    """Maps SQLAlchemy exceptions to database error codes."""

    def __init__(self, origin: str = "database"):
        self.origin = origin

    def map_exception(self, exc: Exception) -> AppError:
        if isinstance(exc, IntegrityError):
            message = str(exc.orig) if exc.orig else str(exc)
            lowered = message.lower()
            if "unique" in lowered or "duplicate" in lowered:
                return duplicate_key("record", message, origin=self.origin).error
            return AppError(
                code=ErrorCode.E4013_CHECK_CONSTRAINT,
                message=f"Constraint violation: {message}",
                context=ErrorContext(origin=self.origin),
                cause=exc,
            )
        if isinstance(exc, OperationalError):
            message = str(exc.orig) if exc.orig else str(exc)
            if "connect" in message.lower() or "unable to open" in message.lower():
                return db_connection_failed(message, origin=self.origin).error
            return transaction_failed(message, origin=self.origin, cause=exc).error
        if isinstance(exc, SQLAlchemyError):
            return transaction_failed(str(exc), origin=self.origin, cause=exc).error
        return internal_error(f"Database error: {exc}", origin=self.origin, cause=exc).error


class SourceErrorMapper(ErrorMapper[T]):
    """Maps ingest exceptions (segmentation, numerals, missing sources).

    Ingest exceptions carry their ``ErrorCode`` as a class attribute so this
    mapper stays free of imports from the ingest package.
    """

    def __init__(self, origin: str = "ingest"):
        self.origin = origin

    def map_exception(self, exc: Exception, text_id: str | None = None) -> AppError:
        code = getattr(exc, "code", ErrorCode.E6000_SOURCE_GENERIC)
        return source_error(
            str(exc),
            code=code,
            text_id=text_id,
            origin=self.origin,
            cause=exc,
        ).error
