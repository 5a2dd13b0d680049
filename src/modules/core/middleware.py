import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

CORRELATION_HEADERS = ("HTTP_X_CORRELATION_ID", "HTTP_X_REQUEST_ID")


class CorrelationIdMiddleware:
    """Middleware that extracts or generates a correlation ID for each request.

    Reads ``X-Correlation-ID`` (or ``X-Request-ID``) from the incoming
    request; if both are absent a new UUID4 is generated.  The ID and the
    caller's ``X-Client-Type`` are bound to structlog's context so every
    log line of the request carries them, and the ID is echoed back in
    both response headers.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = next(
            (request.META[h] for h in CORRELATION_HEADERS if request.META.get(h)),
            None,
        ) or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid,
            client_type=request.META.get("HTTP_X_CLIENT_TYPE", ""),
        )

        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
        )

        response["X-Correlation-ID"] = cid
        response["X-Request-ID"] = cid
        return response
