"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_forward, handle_health
from core.classifier import FailureClassifier
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.translator import RequestTranslator
from services.forwarding import ForwardingHandler
from services.upstream import UpstreamClient

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the gateway application.

    ``transport`` replaces the network transport of the upstream client,
    which lets tests point the gateway at an in-process backend.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.limits.max_connections,
            max_keepalive_connections=config.limits.max_keepalive_connections,
        )
        backend_client = httpx.AsyncClient(
            timeout=config.limits.timeout,
            limits=limits,
            transport=transport,
        )
        header_builder = HeaderBuilder()
        app.state.forwarding_handler = ForwardingHandler(
            logger=logger,
            upstream=UpstreamClient(
                backend_client,
                timeout=config.limits.timeout,
                max_body_size=config.limits.max_body_size,
            ),
            translator=RequestTranslator(config.backend.base_url, header_builder),
            classifier=FailureClassifier(),
            header_builder=header_builder,
        )
        try:
            yield
        finally:
            await backend_client.aclose()

    app = FastAPI(title="Products Gateway", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health():
        return await handle_health()

    prefix = config.gateway.prefix.rstrip("/")

    @app.api_route(f"{prefix}/{{path:path}}", methods=PROXY_METHODS)
    async def proxy(request: Request):
        return await handle_forward(request, config, logger)

    return app
