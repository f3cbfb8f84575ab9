"""
BrightSteps Backend - FastAPI Application

Entry point for the XP / level and challenge progression API used by the
children's tutoring web app.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings, validate_required_settings
from database import get_db_manager
from shared.api import health
from progression.api import challenge_routes, progress_routes, prompt_routes

# Validate configuration on startup
validate_required_settings()

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="BrightSteps Backend",
    description="XP, levels and daily challenges for the BrightSteps tutor",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(progress_routes.router)
app.include_router(challenge_routes.router)
app.include_router(prompt_routes.router)


@app.on_event("startup")
async def startup_event():
    """Create missing tables and validate the database connection."""
    logger.info("Starting BrightSteps Backend...")

    db_manager = get_db_manager()
    if not db_manager.health_check():
        logger.warning("Database health check failed on startup")
        return

    db_manager.create_tables()
    logger.info("Application started successfully")


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
