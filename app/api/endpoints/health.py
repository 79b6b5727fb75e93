from fastapi import APIRouter, status
from pydantic import BaseModel

router = APIRouter()


class HealthCheck(BaseModel):
    status: str = "ok"


@router.get("/health", tags=["Health"], response_model=HealthCheck, status_code=status.HTTP_200_OK)
def get_health() -> HealthCheck:
    """Liveness check, no authentication required."""
    return HealthCheck(status="ok")
