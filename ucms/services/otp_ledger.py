# ucms/services/otp_ledger.py
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ucms.core.config import settings
from ucms.core.errors import AuthError
from ucms.core.timeutil import utcnow
from ucms.models.otp import Otp, OtpPurpose

logger = logging.getLogger(__name__)

INVALID_OTP = "Invalid or expired OTP"


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


class OtpLedger:
    """
    Issues and checks one-time codes tied to a mobile number.

    A code is valid only while ``expires_at`` is strictly in the future and
    only for the exact mobile + code (+ purpose, when the caller asks for
    one). Every kind of mismatch raises the same ``AuthError`` so callers
    cannot tell a wrong code from an expired one.

    The ledger never commits; the calling service owns the transaction.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow,
                 ttl_minutes: Optional[int] = None):
        self.db = db
        self.clock = clock
        self.ttl = timedelta(minutes=ttl_minutes or settings.otp_ttl_minutes)

    def issue(self, mobile: str, purpose: OtpPurpose = OtpPurpose.login) -> Otp:
        row = Otp(
            mobile=mobile,
            otp=generate_code(),
            purpose=purpose,
            expires_at=self.clock() + self.ttl,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def validate(self, mobile: str, code: str, purpose: Optional[OtpPurpose] = None) -> Otp:
        q = self.db.query(Otp).filter(
            Otp.mobile == mobile,
            Otp.otp == code,
            Otp.expires_at > self.clock(),
        )
        if purpose is not None:
            q = q.filter(Otp.purpose == purpose)
        row = q.order_by(Otp.expires_at.desc()).first()
        if not row:
            raise AuthError(INVALID_OTP)
        return row

    def consume(self, mobile: str, code: str) -> int:
        return (
            self.db.query(Otp)
            .filter(Otp.mobile == mobile, Otp.otp == code)
            .delete(synchronize_session=False)
        )

    def purge_expired(self) -> int:
        deleted = (
            self.db.query(Otp)
            .filter(Otp.expires_at <= self.clock())
            .delete(synchronize_session=False)
        )
        if deleted:
            logger.info("otp_purge: deleted %d expired rows", deleted)
        return deleted
