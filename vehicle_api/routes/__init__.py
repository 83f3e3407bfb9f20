"""
Route package initialization.
"""
from .vehicles import router as vehicles_router
from .scrape import router as scrape_router
from .stats import router as stats_router

__all__ = ["vehicles_router", "scrape_router", "stats_router"]
