"""
Vehicle Scraper API.

Serves the stored vehicle collection, accepts page snapshots to scrape,
and exposes JSON/CSV export and import.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vehicle_scraper import __version__ as scraper_version
from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.errors import ScraperError, StorageError

from .config import config
from .database import close_repository, get_repository
from .routes import scrape_router, stats_router, vehicles_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout), logging.FileHandler(config.LOG_FILE)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate()
    logger.info(f"Vehicle store: {config.DB_PATH} (keeping newest {config.MAX_VEHICLES})")
    try:
        yield
    finally:
        close_repository()
        logger.info("Vehicle store closed")


app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)


@app.exception_handler(ScraperError)
async def scraper_error_handler(request: Request, exc: ScraperError):
    """Scraper errors a route did not translate itself."""
    status = 500 if isinstance(exc, StorageError) else 400
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
async def health_check(repo: VehicleRepository = Depends(get_repository)):
    """Liveness plus a round trip to the vehicle store."""
    try:
        total = repo.count()
    except StorageError as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Vehicle store unavailable")

    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "scraper_version": scraper_version,
        "vehicles": total,
    }


for router in (vehicles_router, scrape_router, stats_router):
    app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vehicle_api.main:app", host="0.0.0.0", port=8000, log_level=config.LOG_LEVEL.lower())
