"""
ReelCut - Long-form Video Repurposing Service
Main FastAPI Application Entry Point
"""

import logging
from pathlib import Path
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .utils.logger import setup_logger
from .utils.exceptions import ReelCutError
from .routers import jobs_router, repurpose_router, uploads_router
from .services.orchestrator import get_orchestrator


# Set up logging
logger = setup_logger(level=logging.DEBUG if get_settings().debug else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings = get_settings()

    # Create required directories
    Path(settings.temp_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)

    # Initialize persistent job state and queue workers
    orchestrator = get_orchestrator()
    await orchestrator.start()

    logger.info("=" * 60)
    logger.info("ReelCut - Long-form Video Repurposing Service")
    logger.info("=" * 60)
    logger.info(f"Temp directory: {settings.temp_dir}")
    logger.info(f"Data directory: {settings.data_dir}")
    logger.info(f"Job store: {settings.job_store_backend}")
    logger.info(f"Storage backend: {settings.storage_backend}")
    logger.info(f"Gemini model: {settings.gemini_model}")
    logger.info(f"Queue workers: {settings.job_worker_concurrency}")
    logger.info(f"Queue max pending jobs: {settings.max_pending_jobs}")

    # Check service configurations
    if settings.gemini_api_key:
        logger.info("[OK] Gemini AI configured")
    else:
        logger.warning("[!] Gemini API key not set")

    if settings.storage_backend == "s3":
        if settings.aws_access_key_id:
            logger.info("[OK] AWS S3 configured")
        else:
            logger.warning("[!] S3 storage selected but AWS credentials not set")

    if settings.api_key:
        logger.info("[OK] API key authentication enabled")
    else:
        logger.warning("[!] API key authentication disabled")

    logger.info("=" * 60)
    logger.info("Server started successfully!")
    logger.info("API Docs: http://localhost:8000/docs")
    logger.info("=" * 60)

    yield

    # Cleanup on shutdown
    await orchestrator.stop()
    logger.info("Shutting down ReelCut...")


# Create FastAPI app
app = FastAPI(
    title=get_settings().app_name,
    description="Turn long-form videos into ranked, captioned short-form clips",
    version=get_settings().app_version,
    lifespan=lifespan
)

# CORS middleware
settings = get_settings()
cors_origins = settings.cors_allowed_origins or ["http://localhost:8000", "http://127.0.0.1:8000"]
cors_allow_credentials = "*" not in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Authentication & Global Exception Handlers
# ============================================================================

UNAUTHENTICATED_PATHS = ("/", "/health", "/docs", "/redoc", "/openapi.json")


def _request_api_key(request: Request) -> str:
    """API key from `X-API-Key`, falling back to a bearer token"""
    key = request.headers.get("x-api-key", "").strip()
    if not key:
        scheme, _, token = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer":
            key = token.strip()
    return key


@app.middleware("http")
async def require_api_key(request: Request, call_next):
    """Reject /api requests without the configured key, when one is configured"""
    expected = get_settings().api_key
    if expected and request.url.path not in UNAUTHENTICATED_PATHS:
        if _request_api_key(request) != expected:
            logger.warning(f"Rejected unauthenticated request to {request.url.path}")
            return JSONResponse(
                status_code=401,
                content={
                    "error": "UNAUTHORIZED",
                    "message": "Missing or invalid API key",
                    "recoverable": True,
                    "recovery_hint": "Send the key in the X-API-Key header.",
                },
            )

    return await call_next(request)


def _error_body(code: str, message: str, hint: str) -> dict:
    return {"error": code, "message": message, "recoverable": True, "recovery_hint": hint}


@app.exception_handler(ReelCutError)
async def reelcut_error_handler(request: Request, exc: ReelCutError):
    """Render domain errors with their own HTTP status"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"{request.method} {request.url.path} -> invalid input: {exc}")
    return JSONResponse(
        status_code=400,
        content=_error_body("VALIDATION_ERROR", str(exc), "Check your input parameters and try again."),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} -> unhandled {exc.__class__.__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "INTERNAL_ERROR",
            "An unexpected error occurred. Please try again.",
            "If this persists, check the server logs for details.",
        ),
    )


# Include routers
app.include_router(jobs_router)
app.include_router(repurpose_router)
app.include_router(uploads_router)


@app.get("/")
async def root():
    return {"message": "ReelCut API", "docs": "/docs"}


@app.get("/health")
async def health():
    """Liveness plus job queue load"""
    return {"status": "healthy", "app": "ReelCut", "queue": get_orchestrator().queue.stats()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "reelcut.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
