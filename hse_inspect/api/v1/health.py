"""Health check endpoint with key-value store connectivity check."""

from fastapi import APIRouter

from hse_inspect.api.deps import SettingsDep, StoreDep
from hse_inspect.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(store: StoreDep, settings: SettingsDep) -> HealthResponse:
    """
    Return service health status and store connectivity.
    Used by load balancers and monitoring.
    """
    store_status = "connected" if store.ping() else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        store=store_status,
    )
