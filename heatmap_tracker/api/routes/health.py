import structlog
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from heatmap_tracker.db import Database
from heatmap_tracker.db import get_database


router = APIRouter(tags=["health"])
log = structlog.get_logger(__name__)


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/health/db")
def health_db(database: Database = Depends(get_database)) -> dict[str, str]:
    """Check that the database answers a trivial query."""

    try:
        database.ping()
    except Exception as exc:
        log.warning("database_ping_failed", error=str(exc))
        raise HTTPException(
            status_code=500, detail="Database connection failed"
        ) from exc

    return {"status": "ok"}
