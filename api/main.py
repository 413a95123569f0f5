"""
Plinth Guardrails Service

FastAPI application serving the guardrail engine.
"""

import logging
import sys
from datetime import datetime

from fastapi import FastAPI

from plinth_guardrails import __version__
from plinth_guardrails.database import check_db_connection, init_db
from plinth_guardrails.utils.config import get_settings

from api.guardrails import router as guardrails_router

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Plinth Guardrails",
    description="Evidence gating, confidence ceilings, text checks and drift detection for generated strategy artifacts",
    version=__version__,
)

app.include_router(guardrails_router)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        # Text, score and distribution checks work without a database


@app.get("/health")
async def health():
    """Health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "environment": get_settings().ENVIRONMENT,
        "database": "connected" if check_db_connection() else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
    )
