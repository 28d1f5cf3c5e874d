# File: ucms/models/all.py
# Import every model so Base.metadata knows about all tables (create_all, alembic).
from ucms.models.user import User, UserRole, UserStatus  # noqa: F401
from ucms.models.otp import Otp, OtpPurpose  # noqa: F401
from ucms.models.complaint import Complaint, ComplaintStatus, EscalationLevel  # noqa: F401
from ucms.models.timeline import TimelineEvent  # noqa: F401
from ucms.models.attachment import Attachment  # noqa: F401
