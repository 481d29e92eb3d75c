"""FastAPI application factory and lifespan."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import models  # noqa: F401 - register all models on Base.metadata
from app.api.v1 import api_router
from app.core.config import get_settings
from app.core.exceptions import InternalFailure, TutorPocketError
from app.core.logging import setup_logging
from app.db.base import Base
from app.db.session import engine

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create missing tables; shutdown: dispose the engine."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


async def tutorpocket_error_handler(request: Request, exc: TutorPocketError) -> JSONResponse:
    """ValidationError -> 400, AuthenticationFailure -> 401, InternalFailure -> 500."""
    if isinstance(exc, InternalFailure):
        # Cause was logged where it was raised; the caller only gets the generic text
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_application() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    # CORS: allow localhost in dev; in production use CORS_ORIGINS env (comma-separated)
    if settings.debug:
        cors_origins = ["*"]
    elif settings.environment == "development":
        cors_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
    else:
        cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TutorPocketError, tutorpocket_error_handler)

    @app.get("/")
    def root():
        return {"status": "running", "message": "TutorPocket API", "version": "1.0.0"}

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    return app


app = create_application()
