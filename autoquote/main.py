"""
Main FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from autoquote.db import initialize_database
from autoquote.errors import QuoteServiceError, ValidationError, InternalError
from autoquote.routers import quotes, rating, policies, portal, signatures
from autoquote.middleware import PerformanceMiddleware
from autoquote.cache import config_cache
import logging

logger = logging.getLogger("autoquote")

app = FastAPI(
    title="Auto Quote & Bind API",
    description="Auto insurance quoting, binding and policyholder portal",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Middleware added last runs first: CORS wraps request timing
app.add_middleware(PerformanceMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuoteServiceError)
async def quote_service_error_handler(request: Request, exc: QuoteServiceError):
    logger.info(
        f"Request rejected | "
        f"request_id={getattr(request.state, 'request_id', 'unknown')} | "
        f"error={exc.error_code} | "
        f"message={exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or None
    error = ValidationError(first.get("msg", "Invalid request"), field=field)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(
        f"Unhandled error | request_id={getattr(request.state, 'request_id', 'unknown')}"
    )
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.on_event("startup")
async def startup_event():
    """Initialize database and warm up the rating config on startup."""
    logger.info("Starting Auto Quote & Bind API...")

    initialize_database()
    logger.info("Database initialized")

    tables = config_cache.get_rating_tables()
    logger.info(f"Rating config loaded: base_premium={tables['base_premium']}, "
                f"{len(config_cache.get_coverage_surcharges())} coverage surcharges")

    logger.info("Startup complete")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Auto Quote & Bind API", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


app.include_router(quotes.router, prefix="/api/v1", tags=["quotes"])
app.include_router(rating.router, prefix="/api/v1", tags=["rating"])
app.include_router(policies.router, prefix="/api/v1", tags=["policies"])
app.include_router(portal.router, prefix="/api/v1", tags=["portal"])
app.include_router(signatures.router, prefix="/api/v1", tags=["signatures"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
