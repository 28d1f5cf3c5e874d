# File: ucms/routers/complaints.py
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from ucms.core.ratelimit import limiter
from ucms.core.security import get_current_principal, require_role
from ucms.db.session import SessionLocal, get_db
from ucms.models.complaint import Complaint
from ucms.models.user import User
from ucms.schemas.auth import Principal
from ucms.schemas.complaint import ComplaintCreate, ComplaintPatch, EscalateIn, CommentIn
from ucms.services.complaints import ComplaintService, serialize_complaint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/complaints", tags=["complaints"])

def get_complaint_service(db: Session = Depends(get_db)) -> ComplaintService:
    return ComplaintService(db)

def _send_status_change_notification_safe(complaint_id: int, old_status: str, new_status: str):
    db = SessionLocal()
    try:
        from ucms.services.notify_email import send_status_update

        complaint = db.get(Complaint, complaint_id)
        if not complaint:
            return
        owner = db.get(User, complaint.user_id)
        if owner and owner.email:
            send_status_update(owner.email, complaint.id, complaint.title, old_status, new_status)
    except Exception as e:
        logger.error(f"Error in background status change notification: {e}", exc_info=True)
    finally:
        db.close()

@router.get("")
def list_complaints(
    page: int = Query(default=1),
    status: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD (UTC day)"),
    search: Optional[str] = Query(default=None),
    principal: Principal = Depends(get_current_principal),
    svc: ComplaintService = Depends(get_complaint_service),
):
    return svc.list(principal, page=page, status=status, category=category, date=date, search=search)

@router.post("")
@limiter.limit("10/minute")
def create_complaint(
    request: Request,
    body: ComplaintCreate,
    principal: Principal = Depends(get_current_principal),
    svc: ComplaintService = Depends(get_complaint_service),
):
    complaint = svc.create(principal, body)
    return {"message": "Complaint created successfully", "complaintId": complaint.id}

@router.get("/{complaint_id}")
def get_complaint(
    complaint_id: int,
    principal: Principal = Depends(get_current_principal),
    svc: ComplaintService = Depends(get_complaint_service),
):
    return svc.get(principal, complaint_id)

@router.patch("/{complaint_id}")
def update_complaint(
    complaint_id: int,
    body: ComplaintPatch,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_current_principal),
    svc: ComplaintService = Depends(get_complaint_service),
):
    complaint, old_status = svc.update(principal, complaint_id, body)
    if old_status is not None:
        background_tasks.add_task(
            _send_status_change_notification_safe,
            complaint_id=complaint.id,
            old_status=old_status.value,
            new_status=complaint.status.value,
        )
    return {"message": "Complaint updated successfully", "complaint": serialize_complaint(complaint)}

@router.post("/{complaint_id}/escalate")
def escalate_complaint(
    complaint_id: int,
    body: EscalateIn,
    principal: Principal = Depends(require_role("official", "admin")),
    svc: ComplaintService = Depends(get_complaint_service),
):
    complaint = svc.escalate(principal, complaint_id, body.level, body.reason, body.department)
    return {"message": "Complaint escalated successfully", "complaint": serialize_complaint(complaint)}

@router.post("/{complaint_id}/comments")
def add_comment(
    complaint_id: int,
    body: CommentIn,
    principal: Principal = Depends(require_role("official", "admin")),
    svc: ComplaintService = Depends(get_complaint_service),
):
    event = svc.add_comment(principal, complaint_id, body.comment)
    return {"message": "Comment added successfully", "event": event}
