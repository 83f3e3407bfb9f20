"""
Vehicle store access for the API.
"""
import logging
import threading
from dataclasses import asdict
from typing import Optional

from vehicle_scraper.database import VehicleRepository
from vehicle_scraper.models import Vehicle

from .config import config
from .models import VehicleOut

logger = logging.getLogger(__name__)

_repository: Optional[VehicleRepository] = None
_repository_lock = threading.Lock()


def get_repository() -> VehicleRepository:
    """Shared repository for the configured database; used as a FastAPI dependency."""
    global _repository
    with _repository_lock:
        if _repository is None:
            logger.info(f"Opening vehicle store at {config.DB_PATH}")
            _repository = VehicleRepository(config.DB_PATH)
        return _repository


def close_repository() -> None:
    global _repository
    with _repository_lock:
        if _repository is not None:
            _repository.close()
            _repository = None


def vehicle_out(vehicle: Vehicle) -> VehicleOut:
    return VehicleOut(**asdict(vehicle))
