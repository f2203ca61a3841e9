"""FastAPI application initialization and configuration."""

import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from petcare.api.v1.endpoints.animals import limiter, router as animals_router
from petcare.api.v1.endpoints.auth import router as auth_router
from petcare.api.v1.endpoints.media import router as media_router
from petcare.api.v1.endpoints.users import router as users_router
from petcare.config import settings
from petcare.errors import PetCareError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="PetCare Shelter API",
    description="Backend API for animal shelters: catalog, animal records, media and adopter subscriptions.",
    version="1.0.0",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json",
)

# --- Middleware ---

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)


# Request logging
@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:
    """Log every incoming request and its duration."""
    start = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %s (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# Domain errors share the HTTPException body shape: {"detail": {"error": {...}}}
@app.exception_handler(PetCareError)
async def petcare_error_handler(request: Request, exc: PetCareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"error": {"code": exc.code, "message": exc.message}}},
    )


# Register routes
app.include_router(animals_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")
app.include_router(media_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")

logger.info("PetCare Shelter API started (debug=%s)", settings.DEBUG)
