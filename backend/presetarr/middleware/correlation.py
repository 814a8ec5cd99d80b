"""
Request context for log records.

Every request gets a short correlation id and the acting user id from the
X-User-Id header. Both are attached to each log line written while the
request runs, so the lines of one apply or rollback can be told apart from
a concurrent preview.
"""
import uuid
from contextvars import ContextVar
from typing import Tuple
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# (correlation id, user id) of the request being handled
request_context_var: ContextVar[Tuple[str, str]] = ContextVar("request_context", default=("", ""))


def get_correlation_id() -> str:
    return request_context_var.get()[0]


def get_request_user() -> str:
    return request_context_var.get()[1]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with a correlation id and its caller.

    An id sent in X-Correlation-ID is reused, otherwise a new 8 character id
    is generated. The id is echoed back in the response headers.
    """

    HEADER_NAME = "X-Correlation-ID"
    USER_HEADER = "X-User-Id"

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(self.HEADER_NAME) or uuid.uuid4().hex[:8]
        user_id = request.headers.get(self.USER_HEADER, "0")

        token = request_context_var.set((correlation_id, user_id))
        try:
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = correlation_id
            return response
        finally:
            request_context_var.reset(token)


def correlation_id_filter(record):
    """Loguru filter adding correlation_id and user to the record extras."""
    correlation_id, user_id = request_context_var.get()
    record["extra"]["correlation_id"] = correlation_id or "-"
    record["extra"]["user"] = user_id or "-"
    return True
