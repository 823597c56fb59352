import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tortoise import Tortoise
from tortoise.exceptions import DBConnectionError

from cafe_core.core.config import DB_URL, DB_MAX_RETRIES, DB_RETRY_BASE_DELAY, DB_RETRY_MAX_DELAY
from cafe_core.core.exceptions import TransientStoreError

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(logging.INFO)
log = logging.getLogger("cafe_core.db")

T = TypeVar("T")

# Define all models modules for the ORM
MODELS_MODULES = [
    "cafe_core.models.inventory",
    "cafe_core.models.reorder",
    "cafe_core.models.batch",
    "cafe_core.models.order",
]

# Connectivity failures only; business errors are never retried.
RETRIABLE_ERRORS = (DBConnectionError, ConnectionError, asyncio.TimeoutError)


async def init_db(db_url: Optional[str] = None):
    """Initializes the Tortoise ORM connection and generates schemas."""
    url = db_url or DB_URL
    try:
        await Tortoise.init(
            db_url=url,
            modules={"models": MODELS_MODULES},
        )
        # Generate the database schema (create tables)
        await Tortoise.generate_schemas()
        log.info("Database connection established and schemas generated.")
    except Exception as e:
        log.critical(f"Could not connect to database. Error: {e}")
        # Re-raise to prevent the application from starting without a database
        raise


async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")


async def with_db_retry(
    operation: Callable[[], Awaitable[T]],
    retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
) -> T:
    """
    Runs `operation`, retrying with exponential backoff when the database is unreachable.

    The operation must be safe to re-run: every service call passed here wraps its
    writes in a single database transaction, so a failed attempt leaves nothing behind.
    """
    retries = DB_MAX_RETRIES if retries is None else retries
    base_delay = DB_RETRY_BASE_DELAY if base_delay is None else base_delay
    max_delay = DB_RETRY_MAX_DELAY if max_delay is None else max_delay

    attempt = 0
    while True:
        try:
            return await operation()
        except RETRIABLE_ERRORS as e:
            attempt += 1
            if attempt > retries:
                log.error(f"Database operation failed after {retries} retries: {e}")
                raise TransientStoreError("Database is temporarily unavailable.") from e
            delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
            log.warning(
                f"Database operation failed ({type(e).__name__}: {e}), "
                f"retrying in {delay:.2f}s ({attempt}/{retries})"
            )
            await asyncio.sleep(delay)
