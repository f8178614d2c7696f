import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GalleryError(Exception):
    """Base class for every error the gallery core raises on purpose."""

    status_code: int = 500

    def __init__(self, detail: str, status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(GalleryError):
    """Entity absent, or not owned by the caller."""

    status_code = 404


class StorageUnavailableError(GalleryError):
    """Persistence layer unreachable. The only error reads may retry on."""

    status_code = 503


class UnauthorizedError(GalleryError):
    """Caller does not own the entity being mutated."""

    status_code = 403


class ValidationError(GalleryError):
    status_code = 400


class AccountDeletionFailedError(GalleryError):
    """Cascade transaction aborted and rolled back; nothing was deleted."""

    status_code = 500


class AnalysisUnavailableError(GalleryError):
    status_code = 503


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def gallery_exception_handler(request: Request, exc: GalleryError) -> JSONResponse:
    """Render domain errors with the standard envelope"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # HTTPBearer reports a missing token as 403 (401 on newer FastAPI)
    if exc.status_code in (401, 403) and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with the standard envelope"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, 400)
    )
