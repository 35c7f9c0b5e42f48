"""Monadic Error Handling System

Result-based error propagation with a typed error taxonomy.

Usage:
    from core.errors import Ok, Err, Result, AppError, not_found

    async def find_passage(passage_id: str) -> Result[Passage, AppError]:
        passage = await session.get(Passage, passage_id)
        if passage is None:
            return not_found("Passage", passage_id, origin="engine.curriculum")
        return Ok(passage)

    match await find_passage("passage-001"):
        case Ok(passage):
            ...
        case Err(error):
            log.warning(error.message, code=error.code.name)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    from_exception,
)

from .builders import (
    external_service_error,
    external_service_unavailable,
    timeout_error,
    validation_error,
    db_error,
    not_found,
    duplicate_key,
    db_connection_failed,
    transaction_failed,
    source_error,
    internal_error,
)

from .boundaries import (
    ErrorMapper,
    DatabaseErrorMapper,
    SourceErrorMapper,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
    raise_result,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "from_exception",
    "external_service_error",
    "external_service_unavailable",
    "timeout_error",
    "validation_error",
    "db_error",
    "not_found",
    "duplicate_key",
    "db_connection_failed",
    "transaction_failed",
    "source_error",
    "internal_error",
    "ErrorMapper",
    "DatabaseErrorMapper",
    "SourceErrorMapper",
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
    "raise_result",
]
