from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import time

from .core.config import settings
from .core.errors import register_exception_handlers
from .core.logging import setup_logging
from .core.rate_limit import limiter
from .api.api_v1.api import api_router
from .api.functions import functions_router
from .middleware.cors import FunctionsCORSMiddleware

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Multi-tenant CRM: clients, projects, tasks and invoices",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Error boundary
register_exception_handlers(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Function endpoints answer their own preflights with the whitelist headers
app.add_middleware(FunctionsCORSMiddleware)


# Middleware for request timing
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.VERSION}


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)
app.include_router(functions_router, prefix="/functions/v1", tags=["functions"])


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and other startup tasks"""
    if settings.ENVIRONMENT == "development":
        from .db.database import init_db
        await init_db()

    from .services.bootstrap_service import ensure_superadmin
    await ensure_superadmin()
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.VERSION, settings.ENVIRONMENT)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vibecrm.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
