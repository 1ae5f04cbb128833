"""Health check route."""

from fastapi import APIRouter

from club_backend.models.schemas import HealthResponse
from club_backend.utils.datetime_utils import utcnow

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe."""
    return {"status": "OK", "timestamp": utcnow().isoformat()}
