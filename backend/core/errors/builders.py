"""Domain-Specific Error Builders

Ergonomic constructors for typed errors. Each builder returns ``Err(AppError)``
with the appropriate code, so callers can ``return not_found(...)`` directly
or take ``.error`` to raise it.
"""
from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# External service errors (E1xxx)
# =============================================================================

def external_service_error(
    service: str,
    reason: str = "",
    *,
    code: ErrorCode = ErrorCode.E1011_EXTERNAL_SERVICE_ERROR,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    msg = f"External service '{service}' failed"
    if reason:
        msg += f": {reason}"
    return Err(AppError(
        code=code,
        message=msg,
        context=ErrorContext(origin=origin),
        metadata={"service": service, **metadata},
        cause=cause,
    ))


def external_service_unavailable(
    service: str, reason: str = "", origin: str = ""
) -> Err[AppError]:
    return external_service_error(
        service,
        reason or "not configured",
        code=ErrorCode.E1010_EXTERNAL_SERVICE_UNAVAILABLE,
        origin=origin,
    )


def timeout_error(
    operation: str, timeout_seconds: float, origin: str = ""
) -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.E1002_TIMEOUT,
        message=f"Operation '{operation}' timed out after {timeout_seconds}s",
        context=ErrorContext(origin=origin),
        metadata={"operation": operation, "timeout_seconds": timeout_seconds},
    ))


# =============================================================================
# Validation errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    value: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    meta = {"field": field, "value": value, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


# =============================================================================
# Database errors (E4xxx)
# =============================================================================

def db_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E4000_DATABASE_GENERIC,
    table: str | None = None,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    meta = {"table": table, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
        cause=cause,
    ))


def not_found(
    entity: str,
    id: str | None = None,
    origin: str = "",
) -> Err[AppError]:
    msg = f"{entity} not found"
    if id:
        msg += f": {id}"
    return db_error(
        msg,
        code=ErrorCode.E4010_NOT_FOUND,
        entity=entity,
        entity_id=str(id) if id else None,
        origin=origin,
    )


def duplicate_key(entity: str, detail: str = "", origin: str = "") -> Err[AppError]:
    return db_error(
        f"{entity} already exists" + (f": {detail}" if detail else ""),
        code=ErrorCode.E4011_DUPLICATE_KEY,
        entity=entity,
        origin=origin,
    )


def db_connection_failed(reason: str = "", origin: str = "") -> Err[AppError]:
    msg = "Database connection failed"
    if reason:
        msg += f": {reason}"
    return db_error(msg, code=ErrorCode.E4001_CONNECTION_FAILED, origin=origin)


def transaction_failed(reason: str = "", origin: str = "", cause: Exception | None = None) -> Err[AppError]:
    msg = "Database transaction failed"
    if reason:
        msg += f": {reason}"
    return db_error(msg, code=ErrorCode.E4003_TRANSACTION_FAILED, origin=origin, cause=cause)


# =============================================================================
# Source / catalog errors (E6xxx)
# =============================================================================

def source_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E6000_SOURCE_GENERIC,
    text_id: str | None = None,
    origin: str = "",
    cause: Exception | None = None,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={"text_id": text_id} if text_id else {},
        cause=cause,
    ))


# =============================================================================
# Internal errors (E9xxx)
# =============================================================================

def internal_error(
    message: str,
    *,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))
