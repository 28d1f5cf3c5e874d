# File: ucms/models/complaint.py
from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import String, Float, Enum, DateTime, ForeignKey, func, Index
from sqlalchemy.orm import Mapped, mapped_column
from ucms.core.timeutil import utcnow
from ucms.db.base import Base, enum_values

class ComplaintStatus(PyEnum):
    pending = "Pending"
    in_progress = "In Progress"
    resolved = "Resolved"
    escalated = "Escalated"

class EscalationLevel(PyEnum):
    none = "None"
    level_1 = "Level 1"
    level_2 = "Level 2"
    level_3 = "Level 3"

class Complaint(Base):
    __tablename__ = "complaints"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    category: Mapped[str] = mapped_column(String(120), index=True)
    subcategory: Mapped[str | None] = mapped_column(String(120), nullable=True)
    description: Mapped[str] = mapped_column(String(4000))
    address: Mapped[str] = mapped_column(String(300))
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)

    status: Mapped[ComplaintStatus] = mapped_column(
        Enum(ComplaintStatus, name="complaint_status", values_callable=enum_values),
        default=ComplaintStatus.pending,
        index=True,
    )
    escalation: Mapped[EscalationLevel] = mapped_column(
        Enum(EscalationLevel, name="escalation_level", values_callable=enum_values),
        default=EscalationLevel.none,
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    assigned_to_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

Index("ix_complaints_lat_lng", Complaint.latitude, Complaint.longitude)
