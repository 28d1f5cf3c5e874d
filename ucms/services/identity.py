# ucms/services/identity.py
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ucms.core.errors import AccessDeniedError, AuthError, ConflictError, InternalError, NotFoundError, ValidationError
from ucms.core.security import hash_password, make_otp_login_token, make_tokens, verify_password
from ucms.core.timeutil import utcnow
from ucms.models.otp import OtpPurpose
from ucms.models.user import User, UserRole, UserStatus
from ucms.schemas.auth import Principal, RegisterIn
from ucms.services.notify_sms import send_otp_sms
from ucms.services.otp_ledger import OtpLedger

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class IdentityService:
    """Registration and the three ways of signing in."""

    def __init__(self, db: Session, ledger: Optional[OtpLedger] = None,
                 sms_sender: Callable[[str, str], None] = send_otp_sms):
        self.db = db
        self.ledger = ledger or OtpLedger(db)
        self.sms_sender = sms_sender

    def _by_mobile(self, mobile: str, role: Optional[UserRole] = None) -> Optional[User]:
        q = self.db.query(User).filter(User.mobile == mobile)
        if role is not None:
            q = q.filter(User.role == role)
        return q.first()

    def register(self, body: RegisterIn) -> User:
        name = _clean(body.name)
        email = _clean(body.email).lower()
        mobile = _clean(body.mobile)
        otp = _clean(body.otp)
        if not (name and email and mobile and body.password and otp):
            raise ValidationError("All fields are required")

        self.ledger.validate(mobile, otp, OtpPurpose.registration)

        if self.db.query(User).filter(User.email == email).first():
            raise ConflictError("Email is already registered")
        if self._by_mobile(mobile):
            raise ConflictError("Mobile number is already registered")

        user = User(
            name=name,
            email=email,
            mobile=mobile,
            hashed_password=hash_password(body.password),
            role=UserRole.citizen,
            status=UserStatus.active,
        )
        self.db.add(user)
        self.ledger.consume(mobile, otp)
        self.db.commit()
        self.db.refresh(user)
        logger.info("registered citizen id=%s", user.id)
        return user

    def send_otp(self, mobile: Optional[str], purpose: Optional[OtpPurpose] = None,
                 role: Optional[UserRole] = None) -> None:
        mobile = _clean(mobile)
        if not mobile:
            raise ValidationError("Mobile number is required")

        if purpose == OtpPurpose.registration:
            if self._by_mobile(mobile):
                raise ConflictError("Mobile number is already registered")
        elif purpose is None and role is not None:
            if not self._by_mobile(mobile, role):
                raise NotFoundError("No account found with this mobile number")

        row = self.ledger.issue(mobile, purpose or OtpPurpose.login)
        self.db.commit()
        try:
            self.sms_sender(mobile, row.otp)
        except Exception as e:
            logger.error(f"Failed to send OTP to {mobile}: {e}", exc_info=True)
            raise InternalError("Failed to send OTP")

    def login_with_otp(self, mobile: Optional[str], otp: Optional[str],
                       role: Optional[UserRole] = None) -> dict:
        mobile = _clean(mobile)
        otp = _clean(otp)
        if not mobile or not otp:
            raise ValidationError("Mobile number and OTP are required")

        # any purpose is accepted here
        self.ledger.validate(mobile, otp)

        user = self._by_mobile(mobile, role)
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise AccessDeniedError("Your account has been deactivated. Please contact support.")

        self.ledger.consume(mobile, otp)
        user.last_login = utcnow()
        self.db.commit()
        return {"email": user.email, "token": make_otp_login_token(user)}

    def login_with_password(self, email: str, password: str, role: Optional[UserRole] = None) -> dict:
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not user.hashed_password:
            raise AuthError("Invalid email or password")
        if not verify_password(password, user.hashed_password):
            raise AuthError("Invalid email or password")
        if role is not None and user.role != role:
            raise AuthError("Invalid email or password")
        if not user.is_active:
            raise AccessDeniedError("Your account has been deactivated. Please contact support.")
        user.last_login = utcnow()
        self.db.commit()
        return make_tokens(user)

    def update_profile(self, principal: Principal, name: Optional[str], mobile: Optional[str]) -> User:
        user = self.db.get(User, principal.id)
        if not user:
            raise NotFoundError("User not found")
        if name is not None:
            name = name.strip()
            if len(name) < 2:
                raise ValidationError("Name too short")
            user.name = name
        if mobile is not None:
            mobile = mobile.strip() or None
            if mobile and mobile != user.mobile and self._by_mobile(mobile):
                raise ConflictError("Mobile number is already registered")
            user.mobile = mobile
        self.db.commit()
        self.db.refresh(user)
        return user


def serialize_profile(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "mobile": user.mobile,
        "role": user.role.value,
        "department": user.department,
        "status": user.status.value,
    }
