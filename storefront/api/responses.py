# storefront/api/responses.py
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.utils.errors import AppError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _meta(request: Request, ok: bool) -> dict:
    return {
        "status": ok,
        "timestamp": int(time.time() * 1000),
        "path": request.url.path,
        "method": request.method,
    }


def envelope(request: Request, data: Any, status_code: int = 200) -> JSONResponse:
    """Wrap a successful result as {status, timestamp, path, method, data}."""
    if isinstance(data, BaseModel):
        #python mode keeps Decimal, the encoder then emits JSON numbers
        data = data.model_dump(by_alias=True)
    body = _meta(request, True)
    body["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def error_envelope(request: Request, message: str, code: int) -> JSONResponse:
    body = _meta(request, False)
    body["error"] = {"message": message, "code": code}
    return JSONResponse(status_code=code, content=body)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return error_envelope(request, exc.message, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for err in exc.errors():
        #drop the leading "body"/"path" segment
        field = ".".join(str(part) for part in err.get("loc", ())[1:])
        details.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return error_envelope(request, "; ".join(details) or "Invalid request", 400)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_envelope(request, str(exc.detail), exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_envelope(request, "Internal server error", 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
