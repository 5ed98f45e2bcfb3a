import logging

import pytest

from assistkit.response import ResponseCode, err, errf, ok, status_from_code


def test_ok():
    resp = ok({"key": "value"})
    assert resp.status == 200
    body = resp.to_dict()
    assert body["code"] == ResponseCode.SUCCESS
    assert body["message"] == "success"
    assert body["data"] == {"key": "value"}


def test_ok_with_nil_data():
    resp = ok(None)
    assert resp.status == 200
    body = resp.to_dict()
    assert body["code"] == ResponseCode.SUCCESS
    assert "data" not in body


def test_err_invalid_params():
    resp = err(ResponseCode.INVALID_PARAMS, "invalid input")
    assert resp.status == 400
    body = resp.to_dict()
    assert body["code"] == 10001
    assert body["message"] == "invalid input"
    assert "data" not in body


@pytest.mark.parametrize(
    "code, message, status",
    [
        (ResponseCode.UNAUTHORIZED, "not authenticated", 401),
        (ResponseCode.FORBIDDEN, "access denied", 403),
        (ResponseCode.NOT_FOUND, "resource not found", 404),
        (ResponseCode.SERVER_ERROR, "internal error", 500),
        (ResponseCode.DATABASE_ERROR, "db connection failed", 500),
        (ResponseCode.THIRD_PARTY_ERROR, "external service error", 502),
        (99999, "unknown error", 500),
    ],
)
def test_err_statuses(code, message, status):
    resp = err(code, message)
    assert resp.status == status
    assert resp.to_dict()["code"] == code


@pytest.mark.parametrize(
    "code, status",
    [
        (ResponseCode.SUCCESS, 200),
        (ResponseCode.INVALID_PARAMS, 400),
        (ResponseCode.DATABASE_ERROR, 500),
        (ResponseCode.THIRD_PARTY_ERROR, 502),
        (ResponseCode.NOT_FOUND, 404),
        (ResponseCode.UNAUTHORIZED, 401),
        (ResponseCode.FORBIDDEN, 403),
        (ResponseCode.SERVER_ERROR, 500),
        (99999, 500),
    ],
)
def test_status_from_code(code, status):
    assert status_from_code(code) == status


def test_errf_formats_message():
    resp = errf(ResponseCode.NOT_FOUND, "user %s not found", "bob")
    assert resp.message == "user bob not found"
    assert resp.status == 404


def test_err_logs_internal_error(caplog):
    with caplog.at_level(logging.ERROR, logger="assistkit.response"):
        resp = err(ResponseCode.DATABASE_ERROR, "db failed", RuntimeError("boom"))
    assert resp.message == "db failed"
    assert "code=10002" in caplog.text
    assert "boom" in caplog.text