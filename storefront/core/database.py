"""
Database connection (SQLAlchemy)

This module centralizes database access:
- Engine and session factory
- Declarative Base for ORM models
- FastAPI dependency that yields a session per request
- Connection check with retry logic (used by /health)
"""
import json
import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# SQLAlchemy Configuration
# ============================================================================

def json_serializer(value) -> str:
    """JSON columns store non-ASCII text unescaped"""
    return json.dumps(value, ensure_ascii=False)


def _engine_options(database_url: str) -> dict:
    """Pool options for server databases, thread flag for SQLite"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connection before use
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    json_serializer=json_serializer,
    **_engine_options(settings.DATABASE_URL),
)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base for models
Base = declarative_base()


def get_db():
    """
    FastAPI dependency that yields a SQLAlchemy session

    Usage:
        @router.get("/items")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables registered on Base"""
    # Import models so they register on Base.metadata
    from storefront import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# ============================================================================
# Connection check with retry logic
# ============================================================================

def check_connection_with_retry(max_retries=3, retry_delay=1.0, bind=None):
    """
    Run SELECT 1 against the database, retrying on connection failures

    Retries failed connections up to max_retries times with
    exponential backoff between attempts.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)
        bind: Engine to check (defaults to the application engine)

    Returns:
        Latency of the successful query in milliseconds

    Raises:
        OperationalError: If all retry attempts fail
    """
    target = bind or engine
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            start = time.time()
            with target.connect() as conn:
                conn.execute(text("SELECT 1"))
            latency_ms = round((time.time() - start) * 1000, 2)
            logger.debug(f"Database connection successful on attempt {attempt}")
            return latency_ms

        except OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            # Don't retry on last attempt
            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")

    raise last_error
