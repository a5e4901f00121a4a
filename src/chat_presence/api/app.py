"""
FastAPI Application Module

HTTP transport for the chat room. Participants join by name, keep their
presence alive with heartbeats and exchange public or private messages.
A background sweep evicts anyone who stops sending heartbeats.

Key Features:
- Acting identity read from the ``User`` header, never from the body
- Domain errors mapped to status codes in one exception handler
- Structured logging and Prometheus metrics
- CORS and OpenTelemetry support

All state lives on objects built by ``create_app``; the module-level
``app`` is the default instance served by uvicorn.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog
from fastapi import Body, Depends, FastAPI, Header, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import generate_latest
from structlog import get_logger

from ..config import Settings, get_settings
from ..domain.errors import (
    ChatError,
    Forbidden,
    MissingIdentity,
    NameTaken,
    NotFound,
    StoreUnavailable,
    UnknownUser,
    ValidationFailed,
)
from ..domain.models import Message, Participant
from ..logging_config import configure_logging
from ..metrics import ACTIVE_PARTICIPANTS, CUSTOM_REGISTRY, ERRORS, REQUESTS
from ..repositories.base import Repository
from ..services.clock import Clock
from ..services.gateway import SessionGateway
from ..services.room import ChatRoom
from ..services.sweeper import PresenceSweeper

logger = get_logger()

ERROR_STATUS = {
    ValidationFailed: 422,
    MissingIdentity: 422,
    UnknownUser: 422,
    NameTaken: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_401_UNAUTHORIZED,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_status(error: ChatError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def route_template(request: Request) -> str:
    """Path pattern of the matched route, so metric labels stay bounded"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def get_gateway(request: Request) -> SessionGateway:
    """Returns the gateway bound to this app"""
    return request.app.state.gateway


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[Repository] = None,
    clock: Optional[Clock] = None,
    configure_logs: bool = True
) -> FastAPI:
    """Builds the chat room, its sweeper and the HTTP routes around them"""
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    room = ChatRoom(settings, repository=repository, clock=clock)
    sweeper = PresenceSweeper(room)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Runs the presence sweep for the lifetime of the server"""
        await sweeper.start()
        logger.info("application_startup_complete")

        yield

        await sweeper.stop()
        logger.info("application_shutdown_complete")

    app = FastAPI(
        title="Chat Presence API",
        description="Chat room with heartbeat-based presence",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.room = room
    app.state.gateway = SessionGateway(room)
    app.state.sweeper = sweeper

    # Enable cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Set up request tracing
    FastAPIInstrumentor.instrument_app(app)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Tags each request with an id and logs its outcome"""
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=str(uuid4()))
        start = time.perf_counter()
        logger.info("request_started", method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        except Exception as e:
            REQUESTS.labels(method=request.method, path=route_template(request)).inc()
            logger.error("request_failed", path=request.url.path, error=str(e))
            raise
        REQUESTS.labels(method=request.method, path=route_template(request)).inc()
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latency_ms=round((time.perf_counter() - start) * 1000, 2)
        )
        return response

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
        code = error_status(exc)
        ERRORS.labels(code=exc.code).inc()
        logger.warning("request_rejected", path=request.url.path, error=exc.code, detail=exc.message)
        body: Dict[str, Any] = {"error": exc.code, "detail": exc.message}
        if isinstance(exc, ValidationFailed):
            body["detail"] = exc.details
        return JSONResponse(status_code=code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        return await chat_error_handler(request, ValidationFailed(details))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        ERRORS.labels(code="internal").inc()
        logger.error("unhandled_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "internal", "detail": "Internal server error"})

    @app.post("/participants", status_code=status.HTTP_201_CREATED, response_model=Participant)
    async def join(
        payload: Optional[Dict[str, Any]] = Body(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> Participant:
        """Joins the room under a unique name"""
        return await gateway.join(payload)

    @app.get("/participants", response_model=List[Participant])
    async def list_participants(gateway: SessionGateway = Depends(get_gateway)) -> List[Participant]:
        """Lists everyone currently in the room"""
        return await gateway.list_participants()

    @app.post("/messages", status_code=status.HTTP_201_CREATED, response_model=Message)
    async def send_message(
        payload: Optional[Dict[str, Any]] = Body(default=None),
        user: Optional[str] = Header(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> Message:
        """Sends a public or private message as the header user"""
        return await gateway.send(user, payload)

    @app.get("/messages", response_model=List[Message])
    async def list_messages(
        limit: Optional[str] = None,
        user: Optional[str] = Header(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> List[Message]:
        """Gets the messages visible to the header user, newest last"""
        return await gateway.list_messages(user, limit)

    @app.post("/status")
    async def heartbeat(
        user: Optional[str] = Header(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> Response:
        """Keeps the header user's presence alive"""
        await gateway.heartbeat(user)
        return Response(status_code=status.HTTP_200_OK)

    @app.put("/messages/{message_id}", response_model=Message)
    async def edit_message(
        message_id: str,
        payload: Optional[Dict[str, Any]] = Body(default=None),
        user: Optional[str] = Header(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> Message:
        """Replaces the text of one of the header user's messages"""
        return await gateway.edit_message(user, message_id, payload)

    @app.delete("/messages/{message_id}")
    async def delete_message(
        message_id: str,
        user: Optional[str] = Header(default=None),
        gateway: SessionGateway = Depends(get_gateway)
    ) -> Response:
        """Deletes one of the header user's messages"""
        await gateway.delete_message(user, message_id)
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        """Reports sweeper state and room size"""
        room: ChatRoom = request.app.state.room
        return {
            "status": "ok",
            "sweeper_running": request.app.state.sweeper.running,
            "participants": len(await room.registry.list()),
            "messages": len(await room.messages.all()),
        }

    @app.get("/metrics")
    async def metrics(request: Request):
        """Provides Prometheus metrics for system monitoring"""
        # gauge reflects the room served by this app; counters are process-wide
        ACTIVE_PARTICIPANTS.set(len(await request.app.state.room.registry.list()))
        return Response(generate_latest(CUSTOM_REGISTRY), media_type="text/plain")

    return app


app = create_app()
