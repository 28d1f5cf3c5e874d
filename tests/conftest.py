import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OTP_SMS_PROVIDER"] = "log"
os.environ["EMAIL_PROVIDER"] = "smtp"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("SUPABASE_URL", None)

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from ucms.core.security import hash_password, make_tokens  # noqa: E402
from ucms.core.timeutil import utcnow  # noqa: E402
from ucms.db.base import Base  # noqa: E402
from ucms.db.session import SessionLocal, engine  # noqa: E402
from ucms.main import app  # noqa: E402
from ucms.models import all as _models  # noqa: E402,F401
from ucms.models.complaint import Complaint, ComplaintStatus, EscalationLevel  # noqa: E402
from ucms.models.otp import Otp, OtpPurpose  # noqa: E402
from ucms.models.user import User, UserRole, UserStatus  # noqa: E402
from ucms.schemas.auth import Principal  # noqa: E402

PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.citizen, name=None, email=None, mobile=None,
              status=UserStatus.active, department=None, password=PASSWORD):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            mobile=mobile if mobile is not None else f"90000000{n:02d}",
            hashed_password=hash_password(password),
            role=role,
            status=status,
            department=department,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_complaint(db):
    def _make(owner, assigned_to=None, title="Streetlight out", category="electricity",
              status=ComplaintStatus.pending, escalation=EscalationLevel.none, created_at=None):
        complaint = Complaint(
            title=title,
            category=category,
            description="The light near the bus stop has been off for days",
            address="12 Station Road",
            latitude=15.49,
            longitude=73.82,
            status=status,
            escalation=escalation,
            user_id=owner.id,
            assigned_to_id=assigned_to.id if assigned_to else None,
            created_at=created_at or utcnow(),
        )
        db.add(complaint)
        db.commit()
        db.refresh(complaint)
        return complaint

    return _make


@pytest.fixture
def make_otp(db):
    def _make(mobile, code="123456", purpose=OtpPurpose.registration, expires_in=timedelta(minutes=15)):
        row = Otp(mobile=mobile, otp=code, purpose=purpose, expires_at=utcnow() + expires_in)
        db.add(row)
        db.commit()
        return row

    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_tokens(user)['access_token']}"}


def principal_of(user: User) -> Principal:
    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)
