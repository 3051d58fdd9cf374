import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..services.gateway import backend_message
from .request_context import get_request_id

logger = logging.getLogger(__name__)


def _payload(request: Request, detail: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"detail": detail, "path": str(request.url)}
    request_id = get_request_id(request)
    if request_id:
        payload["request_id"] = request_id
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        payload = _payload(request, "Validation failed.")
        payload["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:  # type: ignore[override]
        # the request's session is closed by get_db, which discards the failed transaction
        message = backend_message(exc)
        logger.error("Database error on %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=_payload(request, message))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore[override]
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_payload(request, "Internal server error."))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # type: ignore[override]
        return JSONResponse(
            status_code=exc.status_code,
            content=_payload(request, exc.detail or "HTTP error."),
            headers=exc.headers,
        )
