"""Middleware assigning every request an id echoed back as ``X-Request-Id``."""

from __future__ import annotations

import re
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from trailblaize.api.request_id import REQUEST_ID_ATTR

REQUEST_ID_HEADER = "X-Request-Id"
# Client-supplied ids end up in log lines; anything else is replaced
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def accept_or_generate(candidate: str | None) -> str:
    if candidate and _SAFE_ID.match(candidate):
        return candidate
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        rid = accept_or_generate(request.headers.get(REQUEST_ID_HEADER))
        setattr(request.state, REQUEST_ID_ATTR, rid)
        response = await call_next(request)
        response.headers.setdefault(REQUEST_ID_HEADER, rid)
        return response
