import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.config import settings
from app.errors import DomainError

log = logging.getLogger("api")


def _field_errors(errors) -> list:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in errors
    ]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_response("VALIDATION_ERROR", "validationError", _field_errors(exc.errors())),
        )

    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError):
        return JSONResponse(
            status_code=exc.http_status,
            content=error_response(exc.code, exc.message, exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content=error_response("NOT_FOUND", "routeNotFound", {"path": request.url.path}),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response("HTTP_ERROR", str(exc.detail)),
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = None if settings.is_production else "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
        return JSONResponse(
            status_code=500,
            content=error_response("INTERNAL_ERROR", "internalServerError", details),
        )
