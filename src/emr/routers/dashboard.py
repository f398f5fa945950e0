from fastapi import APIRouter, Depends

from .. import models, schemas
from ..deps import get_current_user, get_storage
from ..storage import Storage

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=schemas.DashboardMetrics)
def get_metrics(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    """Counts for the dashboard cards; revenue is a configured placeholder."""
    return storage.get_dashboard_metrics()
