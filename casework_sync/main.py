"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from casework_sync.core.config import settings
from casework_sync.core.database import init_db
from casework_sync.api import health, sync
from casework_sync.domain.exceptions import SyncAlreadyRunningError

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Casework Legacy Sync",
    description="Mirrors the legacy Caseworker system into a shadow database using DDD, Hexagonal Architecture, and Temporal",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sync.router)
app.include_router(health.router)


@app.exception_handler(SyncAlreadyRunningError)
async def sync_already_running_handler(request: Request, exc: SyncAlreadyRunningError):
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "entityType": exc.entity_type.value}
    )


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info("Starting Casework Legacy Sync")
    logger.info(f"Legacy API domain: {settings.legacy_api_domain}")

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Casework Legacy Sync")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Casework Legacy Sync",
        "version": "0.1.0",
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "casework_sync.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
