"""Uniform API response bodies with business codes mapped to HTTP statuses."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

_log = logging.getLogger(__name__)


class ResponseCode(enum.IntEnum):
    """Business result codes carried in every response body."""

    SUCCESS = 0
    SERVER_ERROR = 10000
    INVALID_PARAMS = 10001
    DATABASE_ERROR = 10002
    THIRD_PARTY_ERROR = 10003
    NOT_FOUND = 10004
    UNAUTHORIZED = 10005
    FORBIDDEN = 10006


_STATUS_BY_CODE = {
    ResponseCode.SUCCESS: HTTPStatus.OK,
    ResponseCode.INVALID_PARAMS: HTTPStatus.BAD_REQUEST,
    ResponseCode.DATABASE_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
    ResponseCode.THIRD_PARTY_ERROR: HTTPStatus.BAD_GATEWAY,
    ResponseCode.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ResponseCode.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    ResponseCode.FORBIDDEN: HTTPStatus.FORBIDDEN,
    ResponseCode.SERVER_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_from_code(code: int) -> int:
    """Return the HTTP status for a business *code*; unknown codes give 500."""
    return int(_STATUS_BY_CODE.get(code, HTTPStatus.INTERNAL_SERVER_ERROR))


@dataclass
class ApiResponse:
    """A response body together with the HTTP status it is sent with."""

    code: int
    message: str
    data: Any = None
    status: int = int(HTTPStatus.OK)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body; ``data`` is left out when it is ``None``."""
        body: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            body["data"] = self.data
        return body


def ok(data: Any = None) -> ApiResponse:
    """A successful response carrying *data*."""
    return ApiResponse(
        code=ResponseCode.SUCCESS,
        message="success",
        data=data,
        status=status_from_code(ResponseCode.SUCCESS),
    )


def err(code: int, message: str, internal_error: BaseException | None = None) -> ApiResponse:
    """An error response; *internal_error* is logged but never sent to the client."""
    if internal_error is not None:
        _log.error("[ERROR] code=%d internal=%s", code, internal_error)
    return ApiResponse(code=code, message=message, status=status_from_code(code))


def errf(code: int, template: str, *args: Any) -> ApiResponse:
    """An error response whose message is ``template % args``."""
    message = template % args if args else template
    return err(code, message)