"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from credit_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from credit_engine.api.v1 import evaluation, history
from credit_engine.infrastructure.cache import LatestResultCache
from credit_engine.infrastructure.clients.bureau import BureauGateway, create_bureau_gateway
from credit_engine.infrastructure.database.models import Base
from credit_engine.infrastructure.database.session import engine
from credit_engine.infrastructure.observability.logging import setup_logging
from credit_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Audit table lives alongside the service; no migrations for a single append-only table
    Base.metadata.create_all(bind=engine)
    yield


def create_app(
    config=settings,
    bureau: BureauGateway | None = None,
    cache: LatestResultCache | None = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Credit Risk Decision Engine",
        description="Credit evaluation with factor scoring, critical gates and bureau blending",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Process-wide collaborators, built once at startup
    app.state.settings = config
    app.state.bureau = bureau or create_bureau_gateway(config)
    app.state.cache = cache or LatestResultCache(ttl_seconds=config.cache_ttl_seconds)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": config.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(evaluation.router, prefix="/v1", tags=["evaluations"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
