# homely/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

# Read by the JSON log formatter, the error handler and audit_write.
_current_request_id: ContextVar[Optional[str]] = ContextVar("homely_request_id", default=None)

# Client-supplied ids end up in audit_events.request_id (String(64)).
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def get_request_id() -> Optional[str]:
    return _current_request_id.get()


def request_id_for(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


def _accept_or_mint(incoming: Optional[str]) -> str:
    if incoming and _SAFE_ID.match(incoming.strip()):
        return incoming.strip()
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags every HTTP call with a correlation id.

    The caller's id (settings.request_id_header) is kept when it is short and
    printable, otherwise a fresh one is minted. It is echoed on the response
    and stamped on error bodies and on the audit rows the call writes.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        header = settings.request_id_header
        rid = _accept_or_mint(request.headers.get(header))

        request.state.request_id = rid
        token = _current_request_id.set(rid)
        try:
            response = await call_next(request)
        finally:
            _current_request_id.reset(token)

        response.headers[header] = rid
        return response
