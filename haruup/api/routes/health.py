from __future__ import annotations

from fastapi import APIRouter

from haruup.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and monitoring.

    Does not touch the database or Redis, so it stays green while a
    dependency is down and the affected routes answer 503.
    """

    return {"status": "ok", "env": settings.app_env}
