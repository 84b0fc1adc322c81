"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from .config import settings
from .config.database import close_db, init_db
from .core.exceptions import AppError
from .core.responses import error_response
from .middleware.rate_limit import limiter, rate_limit_exceeded_handler
from .middleware.request_context import RequestContextMiddleware
from .repositories.storage_repo import StorageRepository
from .routers import files, uploads
from .utils.logger import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting application", version=settings.app_version, environment=settings.environment)
    await init_db()
    if getattr(app.state, "storage_repo", None) is None:
        app.state.storage_repo = StorageRepository.from_settings(settings)
    if not await app.state.storage_repo.check_connectivity():
        logger.warning("Storage connectivity check failed", bucket=app.state.storage_repo.bucket_name)
    yield
    # Shutdown
    logger.info("Shutting down application")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Direct-to-storage uploads and downloads with presigned URLs and multipart coordination",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)


# Exception handlers
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Domain errors map to their status code and machine-readable code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("Request failed", code=exc.code, message=exc.message, path=request.url.path)
    return error_response(request, exc.status_code, exc.code, exc.message, exc.field)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema validation failures use the validation error code."""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    message = first.get("msg", "Invalid request")
    logger.warning("Request validation failed", field=field, message=message, path=request.url.path)
    return error_response(request, 400, "VALIDATION_ERROR", message, field)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return error_response(request, 500, "INTERNAL_SERVER_ERROR", "Internal server error")


# Health check endpoint
@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    storage_ok = await request.app.state.storage_repo.check_connectivity()
    return {
        "status": "healthy" if storage_ok else "degraded",
        "version": settings.app_version,
        "storage": "ok" if storage_ok else "unreachable",
    }


# Include routers
app.include_router(uploads.router)
app.include_router(files.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Vibe Drop API",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
