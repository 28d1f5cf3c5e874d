# ucms/services/timeline.py
from sqlalchemy.orm import Session
from ucms.models.timeline import TimelineEvent
from ucms.schemas.auth import Principal

COMPLAINT_LODGED = "Complaint Lodged"
STATUS_UPDATED = "Status Updated"
COMMENT_ADDED = "Comment Added"
COMPLAINT_ESCALATED = "Complaint Escalated"


def actor_label(principal: Principal) -> str:
    if principal.is_staff:
        return f"Officer: {principal.name or principal.email}"
    return f"Citizen: {principal.id}"


class TimelineLog:
    """Append-only audit trail of complaint actions. Callers commit."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, complaint_id: int, action: str, description: str, actor: str) -> TimelineEvent:
        event = TimelineEvent(
            complaint_id=complaint_id,
            action=action,
            description=description,
            actor=actor,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def for_complaint(self, complaint_id: int) -> list[TimelineEvent]:
        return (
            self.db.query(TimelineEvent)
            .filter(TimelineEvent.complaint_id == complaint_id)
            .order_by(TimelineEvent.created_at.desc(), TimelineEvent.id.desc())
            .all()
        )


def serialize_event(event: TimelineEvent) -> dict:
    return {
        "id": event.id,
        "action": event.action,
        "description": event.description,
        "by": event.actor,
        "createdAt": event.created_at.isoformat() if event.created_at else None,
    }
