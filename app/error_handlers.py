import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import ContractFlowError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def setup_exception_handlers(app: FastAPI) -> None:
    """Render every error as {"error": "<message>"} with the status its type maps to."""

    @app.exception_handler(ContractFlowError)
    async def contract_error_handler(request: Request, exc: ContractFlowError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc}")
        return _error(exc.status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_errors(exc)
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, GENERIC_ERROR_MESSAGE)
