# ucms/services/user_directory.py
import logging
import secrets
from typing import Callable, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ucms.core.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from ucms.core.security import hash_password
from ucms.models.complaint import Complaint
from ucms.models.user import User, UserRole, UserStatus
from ucms.schemas.auth import Principal
from ucms.schemas.user import UserCreate, UserUpdate
from ucms.services.notify_email import send_invitation

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.official, UserRole.admin)


def serialize_user(u: User, detail: bool = False) -> dict:
    out = {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "role": u.role.value,
        "department": u.department,
        "status": u.status.value,
    }
    if detail:
        out["mobile"] = u.mobile
        out["createdAt"] = u.created_at.isoformat() if u.created_at else None
    return out


def generate_temp_password() -> str:
    return secrets.token_urlsafe(8)


class UserDirectory:
    """Admin management of accounts."""

    def __init__(self, db: Session, mailer: Callable[[str, str, str], None] = send_invitation):
        self.db = db
        self.mailer = mailer

    def _load(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list(self, role: Optional[UserRole] = None, status: Optional[UserStatus] = None,
             search: Optional[str] = None) -> list:
        q = self.db.query(User)
        if role is not None:
            q = q.filter(User.role == role)
        if status is not None:
            q = q.filter(User.status == status)
        if search:
            term = f"%{search.strip()}%"
            q = q.filter(or_(User.name.ilike(term), User.email.ilike(term)))
        users = q.order_by(User.created_at.desc(), User.id.desc()).all()
        return [serialize_user(u) for u in users]

    def get(self, principal: Principal, user_id: int) -> dict:
        if principal.role != UserRole.admin and principal.id != user_id:
            raise AccessDeniedError("Access denied")
        return serialize_user(self._load(user_id), detail=True)

    def create(self, body: UserCreate) -> tuple[User, str]:
        """Create a staff account. Returns the user and its temporary password."""
        email = body.email.strip().lower()
        if body.role not in STAFF_ROLES:
            raise ValidationError("Only official and admin accounts can be created")
        if self.db.query(User).filter(User.email == email).first():
            raise ConflictError("User with this email already exists")
        mobile = (body.mobile or "").strip() or None
        if mobile and self.db.query(User).filter(User.mobile == mobile).first():
            raise ConflictError("Mobile number is already registered")

        temp_password = generate_temp_password()
        user = User(
            name=body.name.strip(),
            email=email,
            mobile=mobile,
            role=body.role,
            department=(body.department or "").strip() or None,
            hashed_password=hash_password(temp_password),
            status=UserStatus.active,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("user %s created with role %s", user.id, user.role.value)

        try:
            self.mailer(user.email, user.name, temp_password)
        except Exception as e:
            logger.error(f"Failed to send invitation email: {e}", exc_info=True)
        return user, temp_password

    def update(self, user_id: int, body: UserUpdate) -> User:
        user = self._load(user_id)
        demoted = body.role is not None and body.role != UserRole.admin
        deactivated = body.status is not None and body.status != UserStatus.active
        if user.role == UserRole.admin and (demoted or deactivated):
            admin_count = self.db.query(User).filter(User.role == UserRole.admin).count()
            if admin_count <= 1:
                raise ValidationError("Cannot demote or deactivate the last admin user")
        if body.name is not None:
            user.name = body.name.strip()
        if body.role is not None:
            user.role = body.role
        if "department" in body.model_fields_set:
            user.department = (body.department or "").strip() or None
        if body.status is not None:
            user.status = body.status
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        user = self._load(user_id)
        if user.role == UserRole.admin:
            admin_count = self.db.query(User).filter(User.role == UserRole.admin).count()
            if admin_count <= 1:
                raise ValidationError("Cannot delete the last admin user")
        owned = self.db.query(Complaint).filter(Complaint.user_id == user.id).count()
        if owned:
            raise ValidationError(
                f"Cannot delete a user who filed {owned} complaint(s). Deactivate instead."
            )
        # unassign before delete so SQLite (no FK actions by default) matches Postgres
        self.db.query(Complaint).filter(Complaint.assigned_to_id == user.id).update(
            {Complaint.assigned_to_id: None}, synchronize_session=False
        )
        self.db.delete(user)
        self.db.commit()
        logger.info("user %s deleted", user_id)
