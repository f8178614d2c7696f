from fastapi import FastAPI, HTTPException, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from sqlmodel import Session
import logging

# Load environment variables as early as possible
load_dotenv()

from .routers import images_router, folders_router, sharing_router, account_router, maintenance_router
from .database import create_db_and_tables, get_session, ping
from .config import settings
from .middleware import SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware, RequestSizeLimitMiddleware
from .exceptions import (
    GalleryError,
    StorageUnavailableError,
    gallery_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
    create_error_response,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

# Initialize FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Add custom exception handlers
app.add_exception_handler(GalleryError, gallery_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)

# GZip compression
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=settings.allowed_methods_list,
    allow_headers=settings.allowed_headers_list,
)

# Routers
app.include_router(images_router.router)
app.include_router(folders_router.router)
app.include_router(sharing_router.router)
app.include_router(sharing_router.public_router)
app.include_router(account_router.router)
app.include_router(maintenance_router.router)


@app.get("/health")
def health_check(session: Session = Depends(get_session)):
    try:
        ping(session)
    except StorageUnavailableError as e:
        return JSONResponse(status_code=503, content=create_error_response(e.detail, 503))
    return {
        "status": "healthy",
        "database": "connected",
        "db_init_ok": getattr(app.state, "db_init_ok", True),
    }


@app.get("/")
def root():
    return {"message": f"{settings.APP_NAME} is running", "version": settings.APP_VERSION}
