"""
FastAPI application for the 3GPP table converter.

Uploaded workbooks are converted inside the request; there is no job queue.
This module wires settings, logging, error mapping and the convert router.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import settings
from api.routers import convert_router
from api.schemas.common import ErrorResponse, HealthCheckResponse
from services.exceptions import ConversionError
from services.export_service import SUPPORTED_FORMATS

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the upload directory before serving requests."""
    os.makedirs(settings.TEMP_UPLOAD_DIR, exist_ok=True)
    logger.info(f"{settings.API_TITLE} v{settings.API_VERSION} ready, "
                f"sheets '{settings.METADATA_SHEET_NAME}'/'{settings.TABLE_SHEET_NAME}', "
                f"uploads in {settings.TEMP_UPLOAD_DIR}")
    yield
    logger.info("Converter API stopped")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS
)


def _error_response(request: Request, status_code: int, error: str, detail=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, path=request.url.path)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode='json'))


@app.exception_handler(ConversionError)
async def conversion_exception_handler(request: Request, exc: ConversionError):
    """Workbooks that are unreadable or do not follow the table layout."""
    logger.warning(f"Conversion failed for {request.url.path}: {exc.message}")
    return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message, exc.details or None)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    detail = {'message': str(exc)} if settings.DEBUG else None
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", detail)


app.include_router(convert_router.router, prefix=settings.API_PREFIX)


@app.get('/', include_in_schema=False)
async def root():
    """Describe the conversion endpoints."""
    return {
        'message': f'Welcome to {settings.API_TITLE}',
        'version': settings.API_VERSION,
        'convert': f'{settings.API_PREFIX}/convert',
        'metadata': f'{settings.API_PREFIX}/convert/metadata',
        'formats': list(SUPPORTED_FORMATS),
        'docs': '/docs'
    }


@app.get('/health', response_model=HealthCheckResponse, tags=['health'])
async def health_check():
    """
    Health check endpoint.

    The service is healthy while uploads can be spooled to
    ``TEMP_UPLOAD_DIR``.

    **Example:**
    ```bash
    curl http://localhost:8000/health
    ```
    """
    upload_dir = settings.TEMP_UPLOAD_DIR
    writable = os.path.isdir(upload_dir) and os.access(upload_dir, os.W_OK)
    if not writable:
        logger.error(f"Upload directory not writable: {upload_dir}")

    return HealthCheckResponse(
        status='healthy' if writable else 'unhealthy',
        timestamp=datetime.utcnow(),
        version=settings.API_VERSION,
        upload_dir='writable' if writable else 'unavailable'
    )


@app.get('/api/ping', tags=['health'])
async def ping():
    return {'ping': 'pong'}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
