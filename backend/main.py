"""Portfolio Dashboard API.

Run with `uvicorn main:app --reload` from backend/. Every route lives under
/api; errors are returned as {"error": message}.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.router import api_router
from app.core import database
from app.core.exceptions import DashboardError
from app.core.logging_config import set_request_id, setup_logging
from app.services.market_data import MarketDataService
from config.settings import get_settings

setup_logging()
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with the caller's X-Request-ID (or a fresh one) and echoes it back."""

    async def dispatch(self, request: Request, call_next):
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.storage_backend == "sql":
        database.init_db()
    logger.info(
        f"[READY] storage={settings.storage_backend} quotes={settings.quote_provider} "
        f"news={settings.news_provider}"
    )

    yield

    MarketDataService.shutdown_executor()
    try:
        database.engine.dispose()
    except Exception as e:
        logger.error(f"[SHUTDOWN] Could not dispose database engine: {e}")
    logger.info("[SHUTDOWN] Quote workers stopped, database released")


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    # Malformed bodies and query parameters are client errors, not 422s
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(400, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return _error(500, "Internal server error")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Portfolio Dashboard API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    def read_root():
        return {"message": "Portfolio Dashboard API is running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
