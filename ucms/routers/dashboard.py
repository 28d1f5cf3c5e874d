# ucms/routers/dashboard.py
from fastapi import APIRouter, Depends
from ucms.core.security import get_current_principal
from ucms.routers.charts import get_reporting_service
from ucms.schemas.auth import Principal
from ucms.services.reporting import ReportingService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("")
def dashboard(
    principal: Principal = Depends(get_current_principal),
    svc: ReportingService = Depends(get_reporting_service),
):
    return svc.dashboard(principal)
