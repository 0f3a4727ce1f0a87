import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import LedgerIntegrityError, PlantingLedger
from .processing import OrderProcessor
from .routes import planting
from .settings import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = [
    (b"access-control-allow-origin", b"*"),
    (b"access-control-allow-methods", b"GET, POST, OPTIONS"),
    (b"access-control-allow-headers", b"Content-Type"),
]


class OpenCorsMiddleware:
    """Wildcard CORS on every response; any OPTIONS request is a 204 preflight."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        if scope.get("method") == "OPTIONS":
            await send({"type": "http.response.start", "status": 204, "headers": list(CORS_HEADERS)})
            await send({"type": "http.response.body", "body": b""})
            return

        async def send_with_cors(message):
            if message["type"] == "http.response.start":
                message = dict(message)
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if not name.lower().startswith(b"access-control-allow-")
                ]
                message["headers"] = headers + CORS_HEADERS
            await send(message)

        await self.app(scope, receive, send_with_cors)


def create_app(
    ledger: Optional[PlantingLedger] = None,
    processor: Optional[OrderProcessor] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        order_processor = processor or OrderProcessor()
        planting_ledger = ledger or PlantingLedger()
        wired = planting_ledger.on_order_created is None
        if wired:
            planting_ledger.on_order_created = order_processor.submit
        app.state.processor = order_processor
        app.state.ledger = planting_ledger
        logger.info("Jungle 404 planting ledger ready")
        yield
        if wired:
            planting_ledger.on_order_created = None
        order_processor.shutdown()
        logger.info("Jungle 404 planting ledger stopped")

    app = FastAPI(title="Jungle 404 Planting API", lifespan=lifespan)
    app.add_middleware(OpenCorsMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(LedgerIntegrityError)
    async def integrity_error_handler(request: Request, exc: LedgerIntegrityError) -> JSONResponse:
        logger.error("Ledger integrity violation on %s %s: %s", request.method, request.url.path, exc)
        detail = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content={"error": "internal_error", "detail": detail})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        detail = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content={"error": "internal_error", "detail": detail})

    app.include_router(planting.router)
    return app


app = create_app()
