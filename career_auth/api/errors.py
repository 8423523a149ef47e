from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


def api_error(
    status_code: int,
    message: str,
    code: str | None = None,
    *,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    detail: dict[str, str] = {"message": message}
    if code:
        detail["code"] = code
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def _error_body(exc: StarletteHTTPException) -> dict:
    if isinstance(exc.detail, dict):
        return exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        return {"message": "Route not found"}
    return {"message": str(exc.detail)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"message": message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("errors: unhandled_exception method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
