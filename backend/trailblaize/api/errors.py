"""Global error handlers translating domain exceptions into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from trailblaize.api.request_id import get_request_id
from trailblaize.domain.alumni.exceptions import ConfigurationError, StoreQueryError
from trailblaize.domain.alumni.filters import FilterValueError
from trailblaize.domain.profile.policy import ProfileNotFound, ProfileValidationError
from trailblaize.infra.rate_limit import RateLimitExceeded

logger = logging.getLogger(__name__)


def _json(request: Request, status_code: int, payload: dict, headers: dict | None = None) -> JSONResponse:
    rid = get_request_id(request)
    payload.setdefault("request_id", rid)
    return JSONResponse(status_code=status_code, content=payload, headers={**(headers or {}), "X-Request-Id": rid})


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        return _json(request, exc.status_code, {"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        errors = [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]
        return _json(request, 422, {"detail": "validation_error", "errors": errors})

    @app.exception_handler(FilterValueError)
    async def filter_value_handler(request: Request, exc: FilterValueError):  # type: ignore[override]
        errors = [{"loc": ["query", exc.field], "msg": exc.message, "type": "value_error"}]
        return _json(request, 422, {"detail": "validation_error", "errors": errors})

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError):  # type: ignore[override]
        return _json(request, 500, {"error": exc.reason, "details": exc.details})

    @app.exception_handler(StoreQueryError)
    async def store_query_handler(request: Request, exc: StoreQueryError):  # type: ignore[override]
        return _json(request, 500, {"error": exc.reason, "details": exc.message, "code": exc.code})

    @app.exception_handler(ProfileValidationError)
    async def profile_validation_handler(request: Request, exc: ProfileValidationError):  # type: ignore[override]
        return _json(request, 400, {"error": exc.reason, "fields": exc.fields})

    @app.exception_handler(ProfileNotFound)
    async def profile_not_found_handler(request: Request, exc: ProfileNotFound):  # type: ignore[override]
        return _json(request, 404, {"error": exc.reason})

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):  # type: ignore[override]
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _json(request, 429, {"error": exc.reason}, headers)

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):  # type: ignore[override]
        logger.error("unhandled_exception path=%s", request.url.path, exc_info=exc)
        return _json(request, 500, {"error": "Internal server error", "details": str(exc)})
