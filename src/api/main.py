"""
FastAPI entry point for the resume builder backend.

Run with: uvicorn src.api.main:app --port 3001
"""
from dotenv import load_dotenv

load_dotenv()

import logging
import os
from datetime import datetime
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import src.api.endpoints.generation as generation_module
import src.api.endpoints.payments as payments_module
from src.api.endpoints.generation import generation_api
from src.api.endpoints.payments import build_payment_services, payments_api
from src.utils.config_loader import load_app_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Resume Builder API"

app_config = load_app_config()

app = FastAPI(
    title=SERVICE_NAME,
    description="AI resume generation and mobile money payment confirmation",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.cors.resolved_origins(),
    allow_credentials=False,
    allow_methods=app_config.cors.allow_methods,
    allow_headers=app_config.cors.allow_headers,
)

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

# Use real Postgres/Redis when env is set, else in-memory stand-ins
if os.getenv("DATABASE_URL"):
    from src.database.postgres_real import PostgresDB

    postgres_db = PostgresDB(connection_string=os.environ["DATABASE_URL"])
else:
    from src.database.postgres import PostgresDB

    postgres_db = PostgresDB()

if os.getenv("REDIS_URL"):
    from src.database.redis_real import RedisCache

    redis_cache = RedisCache(url=os.environ["REDIS_URL"])
else:
    from src.database.redis import RedisCache

    redis_cache = RedisCache()

payments_module.payment_services = build_payment_services(postgres_db, redis_cache, app_config)
generation_module.generation_config = app_config.generation

app.include_router(payments_api, prefix="/api")
app.include_router(generation_api, prefix="/api/ai")


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {"service": SERVICE_NAME, "status": "healthy", "version": "1.0.0", "timestamp": datetime.now().isoformat()}


@app.get("/health", tags=["Health"])
async def health_check():
    """Ledger and token store connectivity."""
    database_ok = postgres_db.ping()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": {"postgres": "connected" if database_ok else "unavailable", "redis": redis_cache.ping()},
        "payments_provider": payments_module.payment_services.provider.__class__.__name__,
        "timestamp": datetime.now().isoformat(),
    }


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("Starting %s...", SERVICE_NAME)

    # Log sanitized DB target details (no credentials).
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        try:
            parsed = urlparse(db_url)
            logger.info(
                "DATABASE_URL target: scheme=%s host=%s port=%s db=%s",
                parsed.scheme,
                parsed.hostname,
                parsed.port or 5432,
                (parsed.path or "").lstrip("/"),
            )
        except ValueError as e:
            logger.warning("Could not parse DATABASE_URL for startup logging: %s", e)
    else:
        logger.info("DATABASE_URL not set; using in-memory transaction ledger")

    try:
        postgres_db.create_tables()
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error("Error initializing database: %s", e)

    if redis_cache.ping():
        logger.info("Token store reachable")
    else:
        logger.warning("Token store connection failed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down %s...", SERVICE_NAME)
