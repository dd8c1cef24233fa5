"""FastAPI application for B-GO pre-booking payments.

This package provides REST endpoints for:
- Health check
- Checkout session creation and payment status polling
- PayMongo webhook delivery
"""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from prebooking.utils.logging import configure_logging, get_logger
from prebooking_api.exceptions import register_exception_handlers
from prebooking_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from prebooking_api.routes.payments import router as payments_router
from prebooking_api.routes.webhooks import router as webhooks_router

configure_logging()
logger = get_logger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"

app = FastAPI(
    title="B-GO Pre-booking Payments API",
    description="Checkout sessions, PayMongo webhooks and payment status for bus pre-bookings",
    version="0.1.0",
)

# CORS_ALLOW_ORIGINS is a comma-separated list; "*" allows any origin
cors_origins = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.include_router(payments_router)
app.include_router(webhooks_router)


@app.get("/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "bgo-prebooking-payments",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "prebooking_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
