"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from wallet_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from wallet_gateway.api.v1 import compliance, tokenization
from wallet_gateway.infrastructure.clients.simulated import SimulatedVerificationProvider
from wallet_gateway.infrastructure.observability.compliance_log import ComplianceLogSink
from wallet_gateway.infrastructure.observability.logging import setup_logging
from wallet_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Wallet Tokenization Gateway",
        description="Card validation, risk scoring and device tokenization via Celcoin",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Shared collaborators
    app.state.log_sink = ComplianceLogSink(capacity=settings.log_sink_capacity)
    app.state.verifier = SimulatedVerificationProvider()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(tokenization.router, prefix="/v1", tags=["tokenization"])
    app.include_router(compliance.router, prefix="/v1", tags=["compliance"])

    return app


app = create_app()
