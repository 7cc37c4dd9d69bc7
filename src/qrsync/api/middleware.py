"""HTTP middleware for request correlation."""

from __future__ import annotations

import re
from typing import Final
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from qrsync.core.request_context import reset_request_id, set_request_id

REQUEST_ID_HEADER: Final[str] = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestCorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and echo it on the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        presented = request.headers.get(REQUEST_ID_HEADER, "").strip()
        request_id = presented if _VALID_REQUEST_ID.match(presented) else uuid4().hex
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
