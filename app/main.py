"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.middleware import setup_rate_limiting
from app.anomalies import routes as anomaly_routes
from app.payroll import routes as payroll_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the daily anomaly job when enabled."""
    scheduler = None
    if settings.ANOMALY_SCHEDULER_ENABLED:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from app.anomalies.scheduler import setup_apscheduler

        scheduler = AsyncIOScheduler(timezone="UTC")
        setup_apscheduler(scheduler)
        scheduler.start()
        logger.info(f"Anomaly scheduler started (daily at {settings.ANOMALY_SCHEDULE_HOUR:02d}:00 UTC)")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)


# Create FastAPI app
app = FastAPI(
    title="Salon Backend Functions",
    description="Anomaly detection and payroll provider proxy for salon operations",
    version="1.0.0",
    lifespan=lifespan,
)

# Browser callers on any origin; no cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

setup_rate_limiting(app)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or mistyped request bodies are client errors: 400 {"error": ...}."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    logger.info(f"Rejected request to {request.url.path}: {problems}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body: " + "; ".join(problems)},
    )


# Include routers
app.include_router(anomaly_routes.router, prefix=settings.API_PREFIX, tags=["Anomalies"])
app.include_router(payroll_routes.router, prefix=settings.API_PREFIX, tags=["Payroll"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.APP_ENV == "development",
    )
