from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from cinestream.core.stream_proxy import StreamProxyError


def register_exception_handlers(app: FastAPI) -> None:
    """
    Render every failure as `{"detail": ...}` with its mapped status code.
    """

    @app.exception_handler(StreamProxyError)
    async def _stream_proxy_error(request: Request, exc: StreamProxyError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("{} {} -> {}: {}", request.method, request.url.path, exc.status_code, exc.detail)
        else:
            logger.info("{} {} -> {}: {}", request.method, request.url.path, exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.debug("Rejected malformed request to {}: {}", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
