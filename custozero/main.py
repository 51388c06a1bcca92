"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from custozero.config import settings
from custozero.database import create_db_engine, create_session_factory
from custozero.exceptions import (
    ConfigurationError,
    InvalidSignatureError,
    TransientStoreError,
    ValidationError,
)
from custozero.rate_limiter import limiter
from custozero.schemas.common import ErrorResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine once per process; requests share its pool."""
    engine = None
    if getattr(app.state, "session_factory", None) is None:
        engine = create_db_engine(settings.database_url)
        app.state.session_factory = create_session_factory(engine)
        logger.info("Database engine initialized")
    yield
    if engine is not None:
        engine.dispose()
        app.state.session_factory = None


# Create FastAPI app
app = FastAPI(
    title="CustoZero Access API",
    description="Payment webhooks and access tokens for the CustoZero diagnostic",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, path=request.url.path)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(request, status.HTTP_400_BAD_REQUEST, "validation_error", str(exc))


@app.exception_handler(InvalidSignatureError)
async def signature_error_handler(request: Request, exc: InvalidSignatureError) -> JSONResponse:
    return _error(request, status.HTTP_401_UNAUTHORIZED, "invalid_signature", str(exc))


@app.exception_handler(TransientStoreError)
async def store_error_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    logger.error(f"Token store unavailable on {request.url.path}: {exc}")
    return _error(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "store_unavailable",
        "Token store temporarily unavailable, please retry",
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.url.path}")
    return _error(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "store_unavailable",
        "Token store temporarily unavailable, please retry",
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error(f"Configuration error: {exc}")
    return _error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "configuration_error",
        "Server misconfigured",
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "CustoZero Access API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include routers
from custozero.routers import access, webhooks  # noqa: E402

app.include_router(webhooks.router, prefix="/api")
app.include_router(access.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, reload=True)
