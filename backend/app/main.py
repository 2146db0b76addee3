"""
FastAPI application main entry point.
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import structlog

# Load environment variables before reading configuration
load_dotenv()

from backend.app import config
from backend.app.api.routes import router
from backend.app.errors import GrantsAPIError
from backend.app.logging_config import configure_logging
from backend.app.metrics import REQUEST_COUNT, REQUEST_DURATION

configure_logging()
logger = structlog.get_logger()

# Create FastAPI app
app = FastAPI(
    title="RMD Grants Dashboard API",
    description="Aggregated reporting and CSV import for CHED grant programs (GIA, IDIG, LAKAS, NAFES)",
    version=config.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add metrics middleware
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Middleware to collect HTTP metrics."""
    start_time = time.time()

    response = await call_next(request)

    # Calculate duration
    duration = time.time() - start_time
    REQUEST_DURATION.observe(duration)

    # Count requests
    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    return response


@app.exception_handler(GrantsAPIError)
async def grants_error_handler(request: Request, exc: GrantsAPIError):
    """Render API errors as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Include API routes
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "RMD Grants Dashboard API",
        "version": config.API_VERSION,
        "docs": "/docs",
        "health": "/api/health",
        "metrics": "/metrics"
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
