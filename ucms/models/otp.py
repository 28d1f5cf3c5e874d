# File: ucms/models/otp.py
from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import String, DateTime, Enum, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from ucms.core.timeutil import utcnow
from ucms.db.base import Base, enum_values

class OtpPurpose(PyEnum):
    registration = "registration"
    login = "login"

class Otp(Base):
    __tablename__ = "otps"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    mobile: Mapped[str] = mapped_column(String(30), nullable=False)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    purpose: Mapped[OtpPurpose] = mapped_column(
        Enum(OtpPurpose, name="otp_purpose", values_callable=enum_values),
        nullable=False,
        default=OtpPurpose.login,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

Index("ix_otps_mobile_otp", Otp.mobile, Otp.otp)
