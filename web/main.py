"""FastAPI main application for the BizBud site platform"""

import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from bizbud import __version__
from bizbud.utils.config import config_manager
from bizbud.utils.exceptions import BizBudError
from bizbud.utils.logger import clear_request_context, get_logger, set_request_context, setup_logging

from .api import auth_router, router as api_router
from .auth_deps import CSRF_HEADER

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

settings = config_manager.settings

# Initialize FastAPI app
app = FastAPI(
    title="BizBud Sites",
    description="Multi-tenant website builder backend",
    version=__version__,
)

# CORS middleware - explicit origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Content-Type", "Authorization", CSRF_HEADER, REQUEST_ID_HEADER],
)


class RequestContextMiddleware:
    """Raw ASGI middleware tagging every log line and response with a request id."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        headers = {k.decode("latin-1").lower(): v.decode("latin-1") for k, v in scope.get("headers") or []}
        request_id = headers.get(REQUEST_ID_HEADER.lower()) or uuid.uuid4().hex[:16]
        set_request_context(request_id=request_id)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers") or [])
                headers.append((REQUEST_ID_HEADER.lower().encode("latin-1"), request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            clear_request_context()


app.add_middleware(RequestContextMiddleware)


@app.exception_handler(BizBudError)
async def bizbud_error_handler(request: Request, exc: BizBudError):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message, status=exc.status_code)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    # Server-side detail stays in the logs
    message = exc.public_message if exc.status_code >= 500 else exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Include API routes
app.include_router(auth_router)
app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    setup_logging(settings.logging.level, settings.logging.format)
    logger.info(
        "BizBud Sites starting",
        environment=settings.environment,
        store_backend=settings.store.backend,
    )
