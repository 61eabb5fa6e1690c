import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.error_handlers import GENERIC_ERROR_MESSAGE

logger = logging.getLogger("app.access")

# Request ID of the request being handled by the current task.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID and write one access log line for it.

    Honours an incoming X-Request-ID header, otherwise generates a UUID, and
    echoes the ID back so clients can quote it when reporting a failure.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors still get a JSON body, the access line and the ID echo
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            response = JSONResponse(status_code=500, content={"error": GENERIC_ERROR_MESSAGE})
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)")
        response.headers["X-Request-ID"] = request_id
        return response


class RequestIDLogFilter(logging.Filter):
    """Stamp log records with the current request ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True
