# ucms/core/security.py
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import time, jwt
from sqlalchemy.orm import Session
from ucms.core.config import settings
from ucms.core.errors import AuthError, AccessDeniedError
from passlib.hash import bcrypt_sha256
from ucms.db.session import get_db
from ucms.models.user import User, UserRole
from ucms.schemas.auth import Principal

ALGO = "HS256"
ACCESS_TTL = 15 * 60
REFRESH_TTL = 7 * 24 * 3600
bearer = HTTPBearer(auto_error=False)

def hash_password(raw: str) -> str:
    return bcrypt_sha256.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    return bcrypt_sha256.verify(raw, hashed)

def _make_token(user: User, ttl: int) -> str:
    now = int(time.time())
    payload = {
        "sub": user.email,
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def make_tokens(user: User) -> dict:
    return {
        "access_token": _make_token(user, ACCESS_TTL),
        "refresh_token": _make_token(user, REFRESH_TTL),
        "token_type": "bearer",
        "expires_in": ACCESS_TTL,
    }

def make_otp_login_token(user: User) -> str:
    """Short-lived credential handed out after a successful OTP login."""
    return _make_token(user, ACCESS_TTL)

def _decode_token(creds: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not creds:
        raise AuthError("Not authenticated")
    try:
        return jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

def get_current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                     db: Session = Depends(get_db)) -> User:
    payload = _decode_token(creds)
    user_id = payload.get("id")
    email = payload.get("sub")
    if user_id is None and not email:
        raise AuthError("Invalid token payload")
    if user_id is not None:
        user = db.get(User, user_id)
    else:
        user = db.query(User).filter(User.email == email).first()
    if not user:
        raise AuthError("User not found")
    if not user.is_active:
        raise AccessDeniedError("user_inactive")
    return user

def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)

def require_role(*roles):
    role_values = [r.value if isinstance(r, UserRole) else r for r in roles]
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role.value not in role_values:
            raise AccessDeniedError("Access denied")
        return principal
    return _dep
