from __future__ import annotations

from haruup.api.routes.character import router as character_router
from haruup.api.routes.health import router as health_router
from haruup.api.routes.mission import router as mission_router
from haruup.api.routes.ranking import router as ranking_router
from haruup.api.routes.rate_limit import router as rate_limit_router

__all__ = [
    "character_router",
    "health_router",
    "mission_router",
    "ranking_router",
    "rate_limit_router",
]
