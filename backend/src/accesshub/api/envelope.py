"""Standard response envelope.

Success: ``{status: "success", message, data?, code, timestamp}``
Error:   ``{status: "error", message, code, errors?, timestamp}``
"""

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from accesshub.errors import FieldError


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_body(message: str, data: Any = None, status_code: int = 200) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        body["data"] = data
    body["code"] = status_code
    body["timestamp"] = utc_timestamp()
    return body


def error_body(
    message: str, status_code: int, errors: list[FieldError] | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "error", "message": message, "code": status_code}
    if errors:
        body["errors"] = [e.to_dict() for e in errors]
    body["timestamp"] = utc_timestamp()
    return body


def success(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(success_body(message, data, status_code)),
    )


def failure(
    message: str,
    status_code: int,
    errors: list[FieldError] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(message, status_code, errors),
        headers=headers,
    )
