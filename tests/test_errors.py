import pytest

import core.errors as errors
from core.errors import ErrorCode, SourceErrorMapper, not_found, timeout_error, validation_error
from ingest.exceptions import MalformedNumeralError, SectionNotFoundError, SourceMissingError


@pytest.mark.parametrize("code,status", [
    (ErrorCode.E1002_TIMEOUT, 503),
    (ErrorCode.E1010_EXTERNAL_SERVICE_UNAVAILABLE, 502),
    (ErrorCode.E1011_EXTERNAL_SERVICE_ERROR, 502),
    (ErrorCode.E2000_VALIDATION_GENERIC, 400),
    (ErrorCode.E2030_MALFORMED_NUMERAL, 400),
    (ErrorCode.E4010_NOT_FOUND, 404),
    (ErrorCode.E4011_DUPLICATE_KEY, 409),
    (ErrorCode.E4003_TRANSACTION_FAILED, 503),
    (ErrorCode.E6001_SOURCE_NOT_FOUND, 500),
])
def test_http_status(code, status):
    assert code.http_status == status


def test_builders_return_err():
    assert not_found("Passage", "passage-9").error.code is ErrorCode.E4010_NOT_FOUND
    assert timeout_error("op", 1.5).error.metadata["timeout_seconds"] == 1.5
    assert validation_error("bad", field="status").error.metadata == {"field": "status"}


def test_with_context_keeps_code():
    error = not_found("Text", "text-404").error.with_context(origin="engine.curriculum")
    assert error.code is ErrorCode.E4010_NOT_FOUND
    assert error.context.origin == "engine.curriculum"


@pytest.mark.parametrize("exc,code", [
    (SourceMissingError("/nowhere.txt"), ErrorCode.E6001_SOURCE_NOT_FOUND),
    (SectionNotFoundError("enchiridion", "^THE ENCHIRIDION$"), ErrorCode.E6020_SECTION_NOT_FOUND),
    (MalformedNumeralError("IIII"), ErrorCode.E2030_MALFORMED_NUMERAL),
])
def test_source_mapper(exc, code):
    assert SourceErrorMapper("ingest.catalog").map_exception(exc).code is code


def test_exported_names_resolve():
    for name in errors.__all__:
        assert getattr(errors, name) is not None
