# orderledger/main.py
"""
Order Ledger - Main API Entry Point
"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from contextlib import asynccontextmanager

from .config.settings import get_settings
from .config.logging import get_logger, setup_logging
from .config.database import init_db
from .core.middleware import LoggingMiddleware, RequestIDMiddleware
from .core.exceptions import custom_exception_handler
from .api.v1.endpoints import customers, orders, shipping
from .utils.date_utils import now_ms

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION}...")
    init_db()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")


# Create FastAPI application
app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Order ledger with pricing resolution and shipping account settlement",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

# Add exception handlers
app.add_exception_handler(HTTPException, custom_exception_handler)

# Include routers
app.include_router(
    orders.router,
    prefix="/api/v1/orders",
    tags=["Orders"]
)
app.include_router(
    shipping.router,
    prefix="/api/v1/shipping",
    tags=["Shipping Ledger"]
)
app.include_router(
    customers.router,
    prefix="/api/v1/customers",
    tags=["Customers"]
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": now_ms(),
        "version": settings.VERSION
    }


if __name__ == "__main__":
    uvicorn.run(
        "orderledger.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        workers=1
    )
