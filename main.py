"""
FastAPI Application Entry Point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis import Redis

from config import settings
from dependencies import build_container, set_container
from routes.chat import router as chat_router
from routes.sync import router as sync_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""

    # Startup
    logger.info("Starting application...")
    logger.info(f"Vector index: {settings.vector_index_name}/{settings.vector_index_namespace}")
    logger.info(f"Language model: {settings.llm_model}")

    if not settings.resolved_vector_index_api_key:
        logger.warning("Vector index credentials missing - semantic search will fall back to recent emails")

    # The vector index connects lazily on first use
    set_container(build_container(settings))
    logger.info("Services ready")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    set_container(None)
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="InboxIQ API",
    description="Ask questions about your emails and draft replies",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS - Allow all origins for development (restrict in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(chat_router, prefix="/api", tags=["Chat"])
app.include_router(sync_router, prefix="/api", tags=["Sync"])


@app.get("/", tags=["Health"])
def root():
    """API root"""
    return {
        "service": "InboxIQ API",
        "status": "running",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "supabase_configured": bool(settings.supabase_url and settings.supabase_service_key),
        "vector_index_configured": bool(
            settings.resolved_vector_index_api_key and settings.vector_index_name
        ),
        "openai_configured": bool(settings.openai_api_key),
    }


@app.get("/health/redis", tags=["Health"])
async def redis_health():
    """Redis connection health check"""
    try:
        r = Redis.from_url(settings.redis_broker_url)
        r.ping()
        return {
            "status": "healthy",
            "redis": "connected",
            "broker_url": settings.redis_broker_url.split('@')[-1]  # Hide password if present
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "redis": f"connection_failed: {str(e)}",
            "broker_url": settings.redis_broker_url.split('@')[-1]
        }
