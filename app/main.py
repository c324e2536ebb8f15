"""
FastAPI application entry point.
Admin console service with middleware, exception handlers and console routes.
"""
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, status, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import time

import httpx

from app.api_client import close_client, get_http_client, init_client
from app.config import settings
from app.services.cloudinary_service import validate_cloudinary_config
from app.services.resource_client import RequestFailed, videos_client
from app.routes import auth, events, press, sliders, videos
from app.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the CMS API client on startup and close it on shutdown."""
    logger.info(f"CORS allowed origins: {settings.CORS_ORIGINS}")
    await init_client()
    logger.info(f"Media backend: {settings.MEDIA_BACKEND}, slider reorder mode: {settings.SLIDER_REORDER_MODE}")
    yield
    await close_client()


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Credentials are allowed so the cms_token cookie reaches the console routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status and duration."""
    started = time.perf_counter()
    label = f"{request.method} {request.url.path}"
    logger.debug(f"-> {label} (origin: {request.headers.get('origin', '-')})")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{label} raised {type(e).__name__}: {str(e)}", exc_info=True)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"<- {label} {response.status_code} in {elapsed_ms:.1f}ms")
    return response


console = APIRouter(prefix="/console")
for module in (auth, events, press, sliders, videos):
    console.include_router(module.router)
app.include_router(console)


def error_response(request: Request, status_code: int, content: dict, headers=None) -> JSONResponse:
    """
    Build a JSON error response that the console frontend can read.
    Handlers run outside CORSMiddleware, so an allowed Origin is echoed here.
    """
    response = JSONResponse(status_code=status_code, content=content, headers=headers)
    origin = request.headers.get("origin")
    if origin and origin in settings.CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Vary"] = "Origin"
    return response


# Exception Handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Pass dict details through; wrap plain ones as {"error", "detail"}."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} -> HTTP {exc.status_code}: {exc.detail}")

    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail, "detail": str(exc.detail)}
    return error_response(request, exc.status_code, content, exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} rejected: {errors}")
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        {"error": "Validation error", "detail": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Last resort: log the traceback and hide internals from the caller."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {str(exc)}",
        exc_info=True
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"error": "Internal server error", "detail": "An unexpected error occurred"},
    )


# Root Endpoints
@app.get("/")
async def root():
    """Root endpoint - service health check."""
    return {
        "message": settings.API_TITLE,
        "status": "healthy",
        "version": settings.API_VERSION
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/cms")
async def health_check_cms(http: httpx.AsyncClient = Depends(get_http_client)):
    """
    CMS API health check.
    Performs one list round trip against the remote API.
    """
    try:
        count = len(await videos_client(http).list())
        return {"cms_api": "reachable", "status": "healthy", "videos": count}
    except RequestFailed as e:
        logger.error(f"CMS API health check failed: {str(e)}")
        return {
            "cms_api": "error",
            "status": "unhealthy",
            "error": str(e)
        }


@app.get("/health/cloudinary")
async def health_check_cloudinary():
    """Report whether Cloudinary credentials are configured."""
    if validate_cloudinary_config():
        return {
            "cloudinary": "configured",
            "status": "healthy",
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME
        }
    return {
        "cloudinary": "not_configured",
        "status": "warning" if settings.MEDIA_BACKEND == "cloudinary" else "healthy",
        "message": "Cloudinary credentials not set in environment variables"
    }
