"""
Relay Service -- the chat UI's single backend endpoint.

Responsibilities:
1. POST /chat/  -- forward a coding question to the completion API, return
                   {"answer": ...} or {"error": ...}
2. GET  /health -- liveness
3. GET  /metrics -- Prometheus exposition

Configuration is read once (RelayConfig.from_env) and handed to the
RelayHandler; one httpx.AsyncClient lives for the whole process.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logger import setup_logging
from shared.observability.metrics import metrics_response, relay_requests
from services.relay_service.config import RelayConfig
from services.relay_service.handler import RelayHandler
from services.relay_service.models import AnswerResponse, ErrorResponse

SERVICE_NAME = "relay_service"
CORS_METHODS = ["GET", "POST", "HEAD", "PUT", "DELETE", "PATCH"]
CORS_HEADERS = ["Origin", "Content-Type", "Accept"]

logger = logging.getLogger(SERVICE_NAME)


def create_app(
    cfg: RelayConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    env_file_loaded: bool = True,
) -> FastAPI:
    """
    Build the relay application.

    ``transport`` replaces the network layer of the shared HTTP client; tests
    pass an ``httpx.MockTransport`` here.
    """
    cfg = cfg or RelayConfig.from_env()

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        setup_logging(SERVICE_NAME, cfg.log_level)
        if not env_file_loaded:
            logger.info("No .env file found")
        if not cfg.api_key:
            logger.warning("NVIDIA_API_KEY is not set; upstream calls will be rejected")

        client = httpx.AsyncClient(timeout=cfg.timeout_seconds, transport=transport)
        application.state.relay = RelayHandler(cfg, client)
        logger.info(
            "Relay Service ready",
            extra={"_extra": {"upstream_url": cfg.upstream_url, "model": cfg.model}},
        )
        yield

        logger.info("Shutting down")
        await client.aclose()

    app = FastAPI(
        title="Coding Question Relay",
        version="0.1.0",
        description="Relays coding questions to a chat-completion API",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.cors_origin],
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        logger.info(
            "%s %s %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={"_extra": {"latency_ms": round((time.monotonic() - start) * 1000, 1)}},
        )
        return response

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME, "model": cfg.model}

    @app.get("/metrics")
    async def metrics():
        return metrics_response()

    @app.post(
        "/chat/",
        response_model=AnswerResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(request: Request):
        logger.info("Received request for chat")
        try:
            raw_body = await request.body()
            status_code, content = await request.app.state.relay.handle(raw_body)
        except Exception as exc:
            logger.exception("Chat request crashed")
            relay_requests.labels(outcome="internal_error").inc()
            return JSONResponse(content=ErrorResponse(error=str(exc)).model_dump(), status_code=500)
        return JSONResponse(content=content, status_code=status_code)

    return app


def main() -> None:
    """Load .env, read the configuration once and serve the relay."""
    env_file_loaded = load_dotenv()
    config = RelayConfig.from_env()
    app = create_app(config, env_file_loaded=env_file_loaded)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
