"""
FastAPI application entrypoint.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api_gateway.dependencies import get_redis
from api_gateway.routes import characters, credits, generation, health, share, short_links
from api_gateway.routes.health import APP_VERSION
from shared.config import get_settings
from shared.errors import AppError
from shared.logging import get_logger, set_character_id

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Application startup",
        extra={"environment": settings.environment, "ai_mock_mode": settings.ai_mock_mode}
    )
    yield
    if settings.redis_url:
        await get_redis().close()
    logger.info("Application shutdown")


app = FastAPI(title="Roast Me Characters API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def reset_log_context(request: Request, call_next):
    set_character_id(None)
    return await call_next(request)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render any AppError as the generic error shape with its status code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        extra={
            "path": request.url.path,
            "status_code": exc.status_code,
            "error_type": type(exc).__name__,
            "error": exc.message,
            "character_id": exc.character_id,
        }
    )
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


app.include_router(generation.router, prefix="/api", tags=["generation"])
app.include_router(characters.router, prefix="/api", tags=["characters"])
app.include_router(credits.router, prefix="/api", tags=["credits"])
app.include_router(share.router, prefix="/api", tags=["share"])
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(short_links.router, prefix="/s", tags=["short-links"])

