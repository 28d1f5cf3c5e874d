# ucms/services/complaints.py
"""
Complaint store: creation, role-scoped listing, detail and staff updates.

Every state change visible on the complaint page appends exactly one
timeline event per action through :class:`TimelineLog`.
"""
import logging
import math
from datetime import date as date_cls, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Query, Session

from ucms.core.errors import AccessDeniedError, NotFoundError, ValidationError
from ucms.core.timeutil import utcnow
from ucms.models.attachment import Attachment
from ucms.models.complaint import Complaint, ComplaintStatus, EscalationLevel
from ucms.models.user import User, UserRole
from ucms.schemas.auth import Principal
from ucms.schemas.complaint import ComplaintCreate, ComplaintPatch
from ucms.services.timeline import (
    COMMENT_ADDED,
    COMPLAINT_ESCALATED,
    COMPLAINT_LODGED,
    STATUS_UPDATED,
    TimelineLog,
    actor_label,
    serialize_event,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
REQUIRED_FIELDS = ("title", "category", "description", "address", "latitude", "longitude")


def scope_to_principal(q: Query, principal: Principal) -> Query:
    """Citizens see their own complaints, officials theirs plus unassigned, admins all."""
    if principal.role == UserRole.citizen:
        return q.filter(Complaint.user_id == principal.id)
    if principal.role == UserRole.official:
        return q.filter(or_(Complaint.assigned_to_id == principal.id, Complaint.assigned_to_id.is_(None)))
    return q


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coordinate(field: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")


def _user_lite(user: Optional[User]) -> Optional[dict]:
    if not user:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def serialize_complaint(c: Complaint) -> dict:
    return {
        "id": c.id,
        "title": c.title,
        "category": c.category,
        "subcategory": c.subcategory,
        "description": c.description,
        "address": c.address,
        "latitude": c.latitude,
        "longitude": c.longitude,
        "status": c.status.value,
        "escalation": c.escalation.value,
        "assignedTo": c.assigned_to_id,
        "userId": c.user_id,
        "createdAt": c.created_at.isoformat() if c.created_at else None,
        "updatedAt": c.updated_at.isoformat() if c.updated_at else None,
    }


def serialize_attachment(a: Attachment) -> dict:
    return {
        "id": a.id,
        "complaintId": a.complaint_id,
        "name": a.name,
        "type": a.content_type,
        "size": a.size,
        "url": a.url,
    }


class ComplaintService:

    def __init__(self, db: Session, timeline: Optional[TimelineLog] = None):
        self.db = db
        self.timeline = timeline or TimelineLog(db)

    def _load(self, complaint_id: int) -> Complaint:
        complaint = self.db.get(Complaint, complaint_id)
        if not complaint:
            raise NotFoundError("Complaint not found")
        return complaint

    @staticmethod
    def ensure_can_view(principal: Principal, complaint: Complaint) -> None:
        if complaint.user_id != principal.id and not principal.is_staff:
            raise AccessDeniedError("Access denied")

    @staticmethod
    def _ensure_staff(principal: Principal) -> None:
        if not principal.is_staff:
            raise AccessDeniedError("Access denied")

    # ---------------------------------------------------------------- create

    def create(self, principal: Principal, body: ComplaintCreate) -> Complaint:
        for field in REQUIRED_FIELDS:
            if _is_blank(getattr(body, field)):
                raise ValidationError(f"{field} is required")

        complaint = Complaint(
            title=body.title.strip(),
            category=body.category.strip(),
            subcategory=(body.subcategory or "").strip() or None,
            description=body.description.strip(),
            address=body.address.strip(),
            latitude=_coordinate("latitude", body.latitude),
            longitude=_coordinate("longitude", body.longitude),
            status=ComplaintStatus.pending,
            escalation=EscalationLevel.none,
            assigned_to_id=None,
            user_id=principal.id,
        )
        self.db.add(complaint)
        self.db.commit()
        self.db.refresh(complaint)

        self.timeline.append(
            complaint.id,
            COMPLAINT_LODGED,
            "Complaint submitted successfully",
            f"Citizen: {principal.id}",
        )
        self.db.commit()
        logger.info("complaint %s lodged by user %s", complaint.id, principal.id)
        return complaint

    # ------------------------------------------------------------------ list

    def list(self, principal: Principal, page: int = 1, status: Optional[str] = None,
             category: Optional[str] = None, date: Optional[str] = None,
             search: Optional[str] = None) -> dict:
        page = max(page or 1, 1)
        q = scope_to_principal(self.db.query(Complaint), principal)

        if status and status != "all":
            try:
                q = q.filter(Complaint.status == ComplaintStatus(status))
            except ValueError:
                raise ValidationError(f"Invalid status: {status}")
        if category and category != "all":
            q = q.filter(Complaint.category == category)
        if date:
            try:
                day = date_cls.fromisoformat(date[:10])
            except ValueError:
                raise ValidationError("Invalid date, expected YYYY-MM-DD")
            start = datetime.combine(day, time.min, tzinfo=timezone.utc)
            q = q.filter(Complaint.created_at >= start, Complaint.created_at < start + timedelta(days=1))
        if search:
            term = f"%{search.strip()}%"
            q = q.filter(or_(
                cast(Complaint.id, String).ilike(term),
                Complaint.title.ilike(term),
                Complaint.description.ilike(term),
            ))

        total = q.count()
        complaints = (
            q.order_by(Complaint.created_at.desc(), Complaint.id.desc())
            .offset((page - 1) * PAGE_SIZE)
            .limit(PAGE_SIZE)
            .all()
        )

        # batch fetch owner / assignee profiles
        user_ids = {c.user_id for c in complaints} | {c.assigned_to_id for c in complaints if c.assigned_to_id}
        users: dict[int, User] = {}
        if user_ids:
            for u in self.db.query(User).filter(User.id.in_(user_ids)):
                users[u.id] = u

        rows = []
        for c in complaints:
            owner = users.get(c.user_id)
            rows.append({
                "id": c.id,
                "title": c.title,
                "category": c.category,
                "date": c.created_at.isoformat() if c.created_at else None,
                "status": c.status.value,
                "escalation": c.escalation.value,
                "assignedTo": c.assigned_to_id,
                "citizen": {
                    "name": owner.name if owner else None,
                    "email": owner.email if owner else None,
                },
                "assignedProfile": _user_lite(users.get(c.assigned_to_id)) if c.assigned_to_id else None,
            })

        return {
            "complaints": rows,
            "totalPages": math.ceil(total / PAGE_SIZE) if total else 1,
            "currentPage": page,
            "totalComplaints": total,
        }

    # ------------------------------------------------------------------- get

    def get(self, principal: Principal, complaint_id: int) -> dict:
        complaint = self._load(complaint_id)
        self.ensure_can_view(principal, complaint)

        attachments = (
            self.db.query(Attachment)
            .filter(Attachment.complaint_id == complaint.id)
            .order_by(Attachment.id)
            .all()
        )
        owner = self.db.get(User, complaint.user_id)
        assignee = self.db.get(User, complaint.assigned_to_id) if complaint.assigned_to_id else None

        out = serialize_complaint(complaint)
        out["attachments"] = [serialize_attachment(a) for a in attachments]
        out["timeline"] = [serialize_event(e) for e in self.timeline.for_complaint(complaint.id)]
        out["profile"] = {
            "id": owner.id,
            "name": owner.name,
            "email": owner.email,
            "mobile": owner.mobile,
        } if owner else None
        out["assignedProfile"] = _user_lite(assignee)
        return out

    # ---------------------------------------------------------------- update

    def _resolve_assignee(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user or user.role not in (UserRole.official, UserRole.admin):
            raise ValidationError("assignedTo must reference an official or admin")
        return user

    def update(self, principal: Principal, complaint_id: int, patch: ComplaintPatch) -> tuple[Complaint, Optional[ComplaintStatus]]:
        """Apply a staff patch. Returns the complaint and its previous status
        when the status actually changed, else None."""
        self._ensure_staff(principal)
        complaint = self._load(complaint_id)

        old_status = complaint.status
        old_escalation = complaint.escalation
        if patch.status is not None:
            complaint.status = patch.status
        if patch.escalation is not None:
            complaint.escalation = patch.escalation
        if patch.assigned_to is not None:
            complaint.assigned_to_id = self._resolve_assignee(patch.assigned_to).id
        complaint.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(complaint)

        actor = actor_label(principal)
        status_changed = complaint.status != old_status
        if status_changed:
            self.timeline.append(
                complaint.id,
                STATUS_UPDATED,
                f"Status changed from '{old_status.value}' to '{complaint.status.value}'",
                actor,
            )
        if complaint.escalation != old_escalation:
            self.timeline.append(
                complaint.id,
                COMPLAINT_ESCALATED,
                f"Escalation changed from '{old_escalation.value}' to '{complaint.escalation.value}'",
                actor,
            )
        comment = (patch.comment or "").strip()
        if comment:
            self.timeline.append(complaint.id, COMMENT_ADDED, comment, actor)
        self.db.commit()
        return complaint, (old_status if status_changed else None)

    def escalate(self, principal: Principal, complaint_id: int, level: EscalationLevel,
                 reason: str, department: Optional[str] = None) -> Complaint:
        self._ensure_staff(principal)
        complaint = self._load(complaint_id)
        if level == EscalationLevel.none:
            raise ValidationError("Escalation level is required")

        complaint.escalation = level
        complaint.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(complaint)

        description = f"Escalated to {level.value}"
        if department:
            description += f" ({department.strip()})"
        description += f": {reason.strip()}"
        self.timeline.append(complaint.id, COMPLAINT_ESCALATED, description, actor_label(principal))
        self.db.commit()
        return complaint

    def add_comment(self, principal: Principal, complaint_id: int, comment: str) -> dict:
        self._ensure_staff(principal)
        complaint = self._load(complaint_id)
        comment = comment.strip()
        if not comment:
            raise ValidationError("comment is required")
        event = self.timeline.append(complaint.id, COMMENT_ADDED, comment, actor_label(principal))
        self.db.commit()
        return serialize_event(event)
