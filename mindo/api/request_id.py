"""Request id propagation.

Every response carries ``X-Request-Id``. A well-formed id supplied by the caller
is reused so client and server logs line up; anything else is replaced.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from mindo.obs import logging as obs_logging

REQUEST_ID_HEADER = "X-Request-Id"
REQUEST_ID_ATTR = "request_id"

_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def get_request_id(request: Optional[Request] = None, default: Optional[str] = "unknown") -> Optional[str]:
    if request is not None:
        rid = getattr(request.state, REQUEST_ID_ATTR, None)
        if rid:
            return str(rid)
    return obs_logging.current_request_id() or default


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        rid = supplied if _VALID_ID.match(supplied) else uuid.uuid4().hex
        setattr(request.state, REQUEST_ID_ATTR, rid)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
