"""
gqlcache - Server

FastAPI application exposing the caching GraphQL gateway.

Routes:
- POST /api/graphql  forwards to the backend through the operation cache;
  the ``x-cache`` response header carries HIT, MISS, ERROR or BYPASS
- GET  /health       cache store statistics
- GET  /metrics      Prometheus text exposition

Resources (cache store, HTTP client) are created in the lifespan and closed
on shutdown.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from .cache import close_all_caches, create_cache
from .config import GqlCacheConfig, get_config
from .errors import ConfigurationError, ErrorCode, GqlCacheError, extract_error_code, make_error_response
from .gateway import GraphQLGateway
from .observability import get_observability, initialize_observability
from .operations import CachePolicy, OperationCache

logger = logging.getLogger(__name__)


def build_gateway(config: GqlCacheConfig) -> GraphQLGateway:
    """Wire store, policy, operation cache and gateway from configuration."""
    if not config.backend.url:
        raise ConfigurationError(
            "BACKEND_GRAPHQL_URL must be set to run the gateway",
            details={"env": "BACKEND_GRAPHQL_URL"},
        )

    store = create_cache(config.cache)
    policy = CachePolicy.default().with_overrides(ttls=config.cache.ttl_overrides)
    cache = OperationCache(store, policy, observability=get_observability(), key_prefix=config.cache.key_prefix)
    return GraphQLGateway(cache, config.backend.url, timeout=config.backend.timeout)


def create_app(config: GqlCacheConfig | None = None, gateway: GraphQLGateway | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration (loaded from the environment when omitted)
        gateway: Pre-built gateway; when given, the lifespan neither builds nor closes one
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cfg = config or get_config()
        owned = app.state.gateway is None
        if owned:
            initialize_observability(
                enable_metrics=cfg.observability.enable_metrics,
                json_logs=cfg.observability.json_logs,
                log_level=str(cfg.log_level),
            )
            app.state.gateway = build_gateway(cfg)
            logger.info(
                "gqlcache gateway started",
                extra={"backend_url": cfg.backend.url, "cache_backend": str(cfg.cache.backend)},
            )
        try:
            yield
        finally:
            if owned:
                await app.state.gateway.close()
                await close_all_caches()
                logger.info("gqlcache gateway stopped")

    app = FastAPI(title="gqlcache", lifespan=lifespan)
    app.state.gateway = gateway

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next: Any) -> Any:
        observability = get_observability()
        request_id = request.headers.get("x-request-id") or str(uuid4())
        observability.set_request_id(request_id)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response

    @app.exception_handler(GqlCacheError)
    async def handle_gqlcache_error(request: Request, exc: GqlCacheError) -> JSONResponse:
        logger.error(
            f"Request failed: {exc.message}",
            extra={"path": request.url.path, "error": exc.message, "details": exc.details},
        )
        return JSONResponse(
            make_error_response(extract_error_code(exc), exc.message),
            status_code=exc.status_code,
        )

    @app.post("/api/graphql")
    async def graphql(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(make_error_response(ErrorCode.INVALID_JSON, "Invalid JSON"), status_code=400)

        gateway: GraphQLGateway = request.app.state.gateway
        with get_observability().trace("gateway.handle"):
            result = await gateway.handle(body, request.headers.get("authorization"))

        return JSONResponse(
            result.payload,
            status_code=result.status_code,
            headers={"x-cache": result.cache_status.value},
        )

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        gateway: GraphQLGateway = request.app.state.gateway
        return {
            "status": "ok",
            "cache": await gateway.cache.store.get_stats(),
        }

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=get_observability().render_metrics(), media_type=CONTENT_TYPE_LATEST)

    return app
