"""
Storefront - Backend API
Catalog, cart, checkout, orders and reviews for an online store
"""
import logging
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

# Load environment variables before settings are read
load_dotenv()

from storefront.api import (  # noqa: E402
    addresses,
    admin,
    auth,
    brands,
    cart,
    categories,
    coupons,
    orders,
    products,
    reviews,
    users,
)
from storefront.core.config import settings  # noqa: E402
from storefront.core.database import check_connection_with_retry, init_db  # noqa: E402
from storefront.core.errors import register_exception_handlers  # noqa: E402
from storefront.core.logging_config import setup_logging  # noqa: E402
from storefront.core.rate_limit import RateLimitMiddleware  # noqa: E402

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")
    yield


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    debug=settings.API_DEBUG,
    lifespan=lifespan,
)

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
)

register_exception_handlers(app)

# Include API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(addresses.router, prefix="/api/v1/addresses", tags=["Addresses"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(brands.router, prefix="/api/v1/brands", tags=["Brands"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["Cart"])
app.include_router(coupons.router, prefix="/api/v1/coupons", tags=["Coupons"])
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(reviews.router, prefix="/api/v1/reviews", tags=["Reviews"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])


@app.get("/")
async def root():
    """API status"""
    return {
        "message": settings.API_TITLE,
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_latency_ms = None
    db_error = None
    try:
        db_latency_ms = check_connection_with_retry(max_retries=1, retry_delay=0.5)
        db_status = "connected"
    except SQLAlchemyError as e:
        db_status = "disconnected"
        db_error = str(e)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "storefront-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }
