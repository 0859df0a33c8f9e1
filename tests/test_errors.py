import pytest

from tusbucket.errors import (
    ERR_INCOMPLETE_UPLOAD,
    S3APIError,
    S3ResponseError,
    TusError,
    error_code,
    is_error_code,
)


def test_tus_error_message_format():
    err = TusError("ERR_INCOMPLETE_UPLOAD", "cannot stream non-finished upload", 400)
    assert str(err) == "ERR_INCOMPLETE_UPLOAD: cannot stream non-finished upload"
    assert err.status == 400


def test_incomplete_upload_constant():
    expected = TusError("ERR_INCOMPLETE_UPLOAD", "cannot stream non-finished upload", 400)
    assert ERR_INCOMPLETE_UPLOAD == expected
    assert str(expected) == "ERR_INCOMPLETE_UPLOAD: cannot stream non-finished upload"


def test_tus_error_equality():
    a = TusError("ERR_X", "msg", 400)
    b = TusError("ERR_X", "msg", 400)
    c = TusError("ERR_X", "msg", 404)
    assert a == b
    assert hash(a) == hash(b)
    assert not (a == c)


def test_tus_error_attributes():
    err = TusError("ERR_X", "boom", 418)
    assert isinstance(err, Exception)
    assert str(err) == "ERR_X: boom"
    assert err.status == 418
    assert err.message == "boom"


def test_api_error_str():
    err = S3APIError("AccessDenied", "Access Denied.")
    assert str(err) == "api error AccessDenied: Access Denied."


def test_error_code_direct():
    assert error_code(S3APIError("NoSuchKey")) == "NoSuchKey"


def test_error_code_through_cause():
    try:
        try:
            raise S3APIError("NoSuchUpload")
        except S3APIError as inner:
            raise RuntimeError("wrapped") from inner
    except RuntimeError as outer:
        caught = outer
    assert error_code(caught) == "NoSuchUpload"
    assert is_error_code(caught, "NoSuchKey", "NoSuchUpload")
    assert not is_error_code(caught, "NoSuchKey")


def test_error_code_through_context():
    try:
        try:
            raise S3APIError("Forbidden")
        except S3APIError:
            raise ValueError("other")
    except ValueError as outer:
        caught = outer
    assert is_error_code(caught, "Forbidden")


def test_error_code_absent():
    assert error_code(ValueError("x")) is None
    assert error_code(None) is None
    assert not is_error_code(ValueError("x"), "NoSuchKey")


def test_is_error_code_without_codes():
    assert not is_error_code(S3APIError("NoSuchKey"))


def test_response_error_headers_case_insensitive():
    err = S3ResponseError(304, {"Etag": '"some-other-etag"', "Cache-Control": "max-age=3600"})
    assert err.status_code == 304
    assert err.headers["etag"] == '"some-other-etag"'
    assert err.headers["cache-control"] == "max-age=3600"


def test_response_error_without_headers():
    err = S3ResponseError(404)
    assert err.headers == {}
    assert error_code(err) is None