# ucms/services/reporting.py
import calendar
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ucms.core.errors import ValidationError
from ucms.core.timeutil import as_utc, utcnow
from ucms.models.complaint import Complaint, ComplaintStatus, EscalationLevel
from ucms.models.user import User, UserRole
from ucms.schemas.auth import Principal
from ucms.services.complaints import scope_to_principal

WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAYS_IN_MONTH_BUCKETS = 30
OVERDUE_AFTER_DAYS = 7
PERIODS = ("week", "month", "year")


def _shift_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _shift_months(now, -1)
    if period == "year":
        return _shift_months(now, -12)
    raise ValidationError(f"Invalid period: {period}")


class ReportingService:
    """Dashboard counters and chart series, aggregated in process."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def category_distribution(self) -> list[dict]:
        counts: dict[str, int] = {}
        for (category,) in self.db.query(Complaint.category).all():
            if not category:
                continue
            counts[category] = counts.get(category, 0) + 1
        return [{"name": c[:1].upper() + c[1:], "value": n} for c, n in counts.items()]

    def complaint_series(self, period: str = "week") -> list[dict]:
        now = self.clock()
        start = period_start(period, now)
        rows = (
            self.db.query(Complaint.created_at, Complaint.status)
            .filter(Complaint.created_at >= start, Complaint.created_at <= now)
            .all()
        )

        if period == "week":
            labels = WEEKDAYS
        elif period == "month":
            labels = [str(i + 1) for i in range(DAYS_IN_MONTH_BUCKETS)]
        else:
            labels = MONTHS
        buckets = [{"name": label, "total": 0, "resolved": 0} for label in labels]

        for created_at, status in rows:
            created_at = as_utc(created_at)
            if period == "week":
                idx = (created_at.weekday() + 1) % 7  # Sunday first
            elif period == "month":
                idx = created_at.day - 1
                if idx >= DAYS_IN_MONTH_BUCKETS:
                    continue
            else:
                idx = created_at.month - 1
            buckets[idx]["total"] += 1
            if status == ComplaintStatus.resolved:
                buckets[idx]["resolved"] += 1
        return buckets

    def dashboard(self, principal: Principal) -> dict:
        now = self.clock()
        scoped = scope_to_principal(self.db.query(Complaint), principal)

        total = scoped.count()
        pending = scoped.filter(Complaint.status == ComplaintStatus.pending).count()
        resolved = scoped.filter(Complaint.status == ComplaintStatus.resolved).count()
        escalated = scoped.filter(or_(
            Complaint.status == ComplaintStatus.escalated,
            Complaint.escalation != EscalationLevel.none,
        )).count()

        recent = scoped.order_by(Complaint.created_at.desc(), Complaint.id.desc()).limit(5).all()

        overdue_cutoff = now - timedelta(days=OVERDUE_AFTER_DAYS)
        overdue = (
            scoped.filter(Complaint.status != ComplaintStatus.resolved, Complaint.created_at < overdue_cutoff)
            .order_by(Complaint.created_at.asc())
            .limit(10)
            .all()
        )

        active_users = []
        if principal.role == UserRole.admin:
            q = (
                self.db.query(User.id, User.name, func.count(Complaint.id))
                .join(Complaint, Complaint.user_id == User.id)
                .group_by(User.id, User.name)
                .order_by(func.count(Complaint.id).desc(), User.id.asc())
                .limit(5)
            )
            active_users = [{"id": i, "name": n, "complaintCount": c} for i, n, c in q.all()]

        return {
            "totalComplaints": total,
            "pendingComplaints": pending,
            "resolvedComplaints": resolved,
            "escalatedComplaints": escalated,
            "recentComplaints": [
                {"id": c.id, "title": c.title, "category": c.category, "createdAt": c.created_at.isoformat()}
                for c in recent
            ],
            "overdueComplaints": [
                {
                    "id": c.id,
                    "title": c.title,
                    "category": c.category,
                    "createdAt": c.created_at.isoformat(),
                    "daysOverdue": (now - as_utc(c.created_at)).days - OVERDUE_AFTER_DAYS,
                }
                for c in overdue
            ],
            "activeUsers": active_users,
        }
