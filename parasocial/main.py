import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from parasocial.config import settings
from parasocial.database import init_db
from parasocial.core.logging import configure_logging
from parasocial.core.redis import redis_client
from parasocial.api import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    configure_logging(settings.log_level)
    logger.info("Starting %s (%s)", settings.app_name, settings.environment)
    await redis_client.connect()
    await init_db()
    logger.info("Database and Redis initialized")

    yield

    # Shutdown
    logger.info("Shutting down")
    await redis_client.disconnect()


app = FastAPI(
    title=settings.app_name,
    description="Federated social network backend: accounts and follow relationships",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
