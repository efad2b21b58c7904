"""
Health checks - for load balancers, Kubernetes, and monitoring.
Liveness never touches the database; readiness runs a trivial query.
"""

from fastapi import APIRouter
from sqlalchemy import text

from app.config import get_settings
from app.db.session import DbSession

router = APIRouter()
settings = get_settings()


@router.get("")
async def health():
    """Liveness: is the process up?"""
    return {"status": "ok", "app": settings.app_name}


@router.get("/ready")
async def ready(session: DbSession):
    """Readiness: can the store answer? Failures surface through the error handlers."""
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}
