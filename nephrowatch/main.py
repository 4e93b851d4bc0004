from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nephrowatch.api import alerts, consultations, health, patients, stats, thresholds
from nephrowatch.api.deps import require_api_key
from nephrowatch.config import settings
from nephrowatch.database import close_db, init_db
from nephrowatch.logging import configure_logging, request_id_var

configure_logging()
logger = logging.getLogger("nephrowatch")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting NephroWatch API")
    try:
        await init_db()
        logger.info("Database initialized")
    except Exception:
        logger.exception("Failed to initialize database")
        raise

    yield

    logger.info("Shutting down NephroWatch API")
    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception:
        logger.exception("Error closing database")
    logger.info("NephroWatch API shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    # NephroWatch API

    Follow-up of chronic kidney disease patients with automatic clinical alerts.

    ## Features

    - **Patients** - Demographics and CKD stage
    - **Consultations** - Creatinine, weight and blood pressure per visit
    - **Alerts** - Raised automatically when a consultation crosses a threshold
    - **Thresholds** - Global cut points with per-patient overrides
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id", str(uuid.uuid4()))
    request_id_var.set(request_id)
    response = await call_next(request)
    response.headers.setdefault("X-Request-Id", request_id)
    return response


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if not settings.debug:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=63072000; includeSubDomains",
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(health.router)
for module in (patients, consultations, alerts, thresholds, stats):
    app.include_router(
        module.router,
        prefix=settings.api_prefix,
        dependencies=[Depends(require_api_key)],
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(_request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.detail,
                "status_code": exc.status_code,
                "type": "http_error",
                "request_id": request_id_var.get(),
            }
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "message": "Validation error",
                "status_code": 422,
                "type": "validation_error",
                "details": jsonable_encoder(exc.errors()),
                "request_id": request_id_var.get(),
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(_request: Request, _exc: Exception):
    logger.exception("Unhandled error")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Internal server error",
                "status_code": 500,
                "type": "server_error",
                "request_id": request_id_var.get(),
            }
        },
    )
