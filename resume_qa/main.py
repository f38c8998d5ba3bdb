"""
FastAPI application for the Resume Q&A service.

Provides endpoints for:
- Uploading a PDF resume
- Asking free-text questions about a resume
- Listing, viewing and deleting stored resumes
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .database import init_db
from .models import HealthResponse
from .routers import ask, resumes, upload
from .services.ai import get_answer_service
from .services.exceptions import ResumeQAError
from .services.text_extractor import get_text_extractor

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Resume Q&A Service...")
    backend = settings.resolved_storage_backend
    logger.info("Resume storage backend: %s", backend)
    if backend == "database":
        init_db()
    # Initialize services on startup
    get_text_extractor()
    get_answer_service()
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Resume Q&A Service...")


# Create FastAPI application
app = FastAPI(
    title="Resume Q&A API",
    description="Upload a PDF resume and ask questions about it",
    version=__version__,
    lifespan=lifespan,
)


# =============================================================================
# Middleware
# =============================================================================


# Must be registered before CORSMiddleware so error responses get CORS headers
@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next):
    """Last-resort handler so callers always get a readable error message."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unexpected error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Internal error: {exc}"},
        )


# Configure CORS for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy", message="Resume Q&A API is running", version=__version__
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(upload.router)
app.include_router(ask.router)
app.include_router(resumes.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(ResumeQAError)
async def resume_qa_error_handler(request: Request, exc: ResumeQAError):
    """Handle service errors with their mapped status code."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with an error message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request: " + "; ".join(messages)},
    )

