"""
HTTP middleware and error rendering for the storefront API
Every response carries a request id; errors share one JSON envelope
"""

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable, Optional
import logging
import time
import uuid

from .config import settings
from .exceptions import StorefrontException

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def error_body(code: Optional[str], message: str, request: Request) -> dict:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "request_id": getattr(request.state, "request_id", None),
        },
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log how it went

    An id sent by the caller in X-Request-ID is reused so storefront logs
    line up with the frontend's.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            logger.exception(f"{request.method} {request.url.path} crashed after {elapsed:.3f}s [{request_id}]")
            detail = "An unexpected error occurred"
            response = JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", detail, request))
        else:
            elapsed = time.perf_counter() - started
            logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s [{request_id}]")

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response


async def storefront_exception_handler(request: Request, exc: StorefrontException) -> JSONResponse:
    """Render storefront exceptions with their error code"""
    if exc.status_code >= 500:
        logger.warning(f"{request.url.path}: {exc.error_code} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_code, exc.detail, request),
        headers=exc.headers,
    )


def setup_middleware(app: FastAPI):
    """Configure CORS, request context and error rendering"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(StorefrontException, storefront_exception_handler)
