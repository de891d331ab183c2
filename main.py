import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment-specific .env file BEFORE any app imports
env = os.getenv("ENV", "local")
dotenv_file = f".env.{env}"
load_dotenv(dotenv_file)

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.middleware import RequestContextMiddleware
from app.routers import deletion_router
from app.schemas import HealthResponse
from app.services.deletion import DeletionError
from app.services.deletion.dispatcher import dispatcher
from app.services.scheduler import scheduler_service
from app.utils import (
    logger,
    configure_sentry,
    capture_exception,
    error_response,
    validation_error,
    internal_error,
    is_debug,
    API_PREFIX,
)

# Initialize Sentry for error tracking (only in non-debug environments)
sentry_enabled = configure_sentry()
if sentry_enabled:
    logger.info("Sentry error tracking initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting background scheduler...")
    await scheduler_service.start()

    yield

    logger.info("Stopping background scheduler...")
    await scheduler_service.stop()
    # Let in-flight code deliveries and hand-offs finish
    await dispatcher.drain(timeout=10)


app = FastAPI(
    title="Account Deletion Service",
    description="Two-step account deletion authorization for workers and property managers",
    version="0.1.0",
    docs_url="/docs" if is_debug() else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(deletion_router, prefix=API_PREFIX)


@app.exception_handler(DeletionError)
async def deletion_error_handler(request: Request, exc: DeletionError):
    """Application-level rejections: user-facing message, stable code."""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
    return error_response(exc.code, exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")
    return validation_error(message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {exc}",
        exc_info=True,
    )

    capture_exception(exc)

    return internal_error()


@app.get("/")
async def root():
    return {"message": "Account Deletion Service", "version": "0.1.0"}


@app.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint."""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthResponse(
        status="healthy",
        database=db_status,
        scheduler="running" if scheduler_service.running else "stopped",
    )


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting Account Deletion Service (env={env}, debug={is_debug()})")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=is_debug())
