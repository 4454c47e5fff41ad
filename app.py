from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from backend import KeyValueStore, RedisBackend
from constants import ALLOWED_ORIGINS, CLAIM_SEATS, HMAC_SECRET, LOG_FILE, LOG_LEVEL
from conversations import ConversationDirectory
from errors import CouncilError
from logging_config import get_logger, setup_logging
from messages import MessageLog
from routers.auth import auth_router
from routers.conversations import conversations_router
from routers.messages import messages_router
from seats import SeatRegistry
from tokens import IdentityTokenService

setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def _bind_services(app: FastAPI, store: KeyValueStore, claim_seats: bool, clock=None):
    app.state.store = store
    app.state.directory = ConversationDirectory(store)
    app.state.message_log = MessageLog(store, clock=clock)
    app.state.seat_registry = SeatRegistry(store) if claim_seats else None


def _register_exception_handlers(app: FastAPI):
    @app.exception_handler(CouncilError)
    async def _council_error(request: Request, exc: CouncilError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) or "body" for err in exc.errors()})
        logger.warning(f"Rejected malformed {request.method} {request.url.path}: {fields}")
        return JSONResponse(status_code=400, content={"detail": f"Invalid request: {', '.join(fields)}"})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    store: Optional[KeyValueStore] = None,
    secret: Optional[str] = None,
    claim_seats: Optional[bool] = None,
    clock=None,
) -> FastAPI:
    """Build the API.

    Without a store (production) the Redis backend is opened in the lifespan
    and closed on shutdown. Tests pass their own store, which is bound
    immediately.
    """
    secret = secret or HMAC_SECRET
    if not secret:
        raise RuntimeError("HMAC_SECRET is not set")
    claim_seats = CLAIM_SEATS if claim_seats is None else claim_seats

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store is not None:
            yield
            return
        backend = RedisBackend.from_env()
        await backend.ping()
        _bind_services(app, backend, claim_seats, clock)
        yield
        await backend.close()
        logger.info("Redis client closed")

    app = FastAPI(title="Council Chat", lifespan=lifespan)
    app.state.token_service = IdentityTokenService(secret)
    if store is not None:
        _bind_services(app, store, claim_seats, clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    _register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(conversations_router)
    app.include_router(messages_router)

    @app.get("/api/health", response_class=PlainTextResponse)
    async def health():
        return "ok"

    logger.info(f"FastAPI application initialized (claim_seats={claim_seats})")
    return app


app = create_app()
