"""
ApplyForm API - Application Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import ApplyFormException
from app.core.postgres import get_postgres_client, cleanup_postgres
from app.routes import api_router
from app.schemas.common import ErrorResponse

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool and apply the schema; close the pool on shutdown."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    client = get_postgres_client()
    await client.connect()
    await client.init_schema()

    yield

    logger.info("Shutting down...")
    await cleanup_postgres()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Error Handlers ====================

@app.exception_handler(ApplyFormException)
async def applyform_exception_handler(request: Request, exc: ApplyFormException):
    body = ErrorResponse(
        error=exc.detail,
        error_code=exc.error_code,
        details=exc.extra or None
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Path/query parameters FastAPI rejected before our own parsing ran
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "path", "query")]
    field = loc[0] if loc else None
    body = ErrorResponse(
        error=f"Invalid value for '{field}': {first.get('msg', 'invalid input')}",
        error_code="INVALID_INPUT",
        details={"field": field} if field else None
    )
    return JSONResponse(status_code=400, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    body = ErrorResponse(error="Internal server error", error_code="INTERNAL_ERROR")
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(api_router, prefix=settings.API_PREFIX)


# ==================== Health ====================

@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "status": "running",
        "version": settings.APP_VERSION,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy"}
