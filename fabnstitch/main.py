"""FastAPI application entry point."""
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fabnstitch.config import settings
from fabnstitch.database import engine, Base
from fabnstitch.errors import (
    ConflictError,
    FabnstitchError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from fabnstitch import models  # noqa: F401  (register tables on Base)
from fabnstitch.routes import admin, auth, customer, fabrics, leads, orders, tailor

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Order tracking for a tailoring business with customer, tailor and admin portals",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(leads.router, prefix="/api")
app.include_router(fabrics.router, prefix="/api")
app.include_router(customer.router, prefix="/api")
app.include_router(tailor.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


# Most specific first; subclasses resolve through the MRO.
ERROR_STATUS_CODES = {
    NotFoundError: 404,
    ForbiddenError: 403,
    InvalidInputError: 400,
    ConflictError: 409,
    PersistenceError: 500,
}


def status_code_for(exc: FabnstitchError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


@app.exception_handler(FabnstitchError)
async def domain_error_handler(request: Request, exc: FabnstitchError) -> JSONResponse:
    """Map domain errors to HTTP responses; server-side failures stay generic."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        detail = "Internal server error"
    else:
        detail = str(exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_type": type(exc).__name__},
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "message": f"{settings.APP_NAME} API is running"}
