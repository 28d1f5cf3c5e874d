# ucms/routers/charts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from ucms.core.security import get_current_principal
from ucms.db.session import get_db
from ucms.services.reporting import ReportingService

router = APIRouter(prefix="/charts", tags=["charts"], dependencies=[Depends(get_current_principal)])

def get_reporting_service(db: Session = Depends(get_db)) -> ReportingService:
    return ReportingService(db)

@router.get("/categories")
def categories(svc: ReportingService = Depends(get_reporting_service)):
    return svc.category_distribution()

@router.get("/complaints")
def complaints(period: str = Query("week"), svc: ReportingService = Depends(get_reporting_service)):
    return svc.complaint_series(period)
