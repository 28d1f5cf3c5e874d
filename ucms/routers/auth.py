# File: ucms/routers/auth.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from ucms.db.session import get_db
from ucms.schemas.auth import RegisterIn, SendOtpIn, VerifyOtpIn, LoginIn, TokenPair, OtpLoginOut, ProfileIn, Principal
from ucms.core.security import get_current_principal
from ucms.core.ratelimit import limiter
from ucms.models.user import User
from ucms.services.identity import IdentityService, serialize_profile

router = APIRouter(prefix="/auth", tags=["auth"])

def get_identity_service(db: Session = Depends(get_db)) -> IdentityService:
    return IdentityService(db)

@router.post("/register", status_code=201)
def register(body: RegisterIn, svc: IdentityService = Depends(get_identity_service)):
    user = svc.register(body)
    return {"message": "User registered successfully", "userId": user.id}

@router.post("/send-otp")
@limiter.limit("5/minute")
def send_otp(request: Request, body: SendOtpIn, svc: IdentityService = Depends(get_identity_service)):
    svc.send_otp(body.mobile, body.purpose, body.role)
    return {"message": "OTP sent successfully"}

@router.post("/verify-otp", response_model=OtpLoginOut)
@limiter.limit("10/minute")
def verify_otp(request: Request, body: VerifyOtpIn, svc: IdentityService = Depends(get_identity_service)):
    return svc.login_with_otp(body.mobile, body.otp, body.role)

@router.post("/login", response_model=TokenPair)
@limiter.limit("10/minute")
def login(request: Request, body: LoginIn, svc: IdentityService = Depends(get_identity_service)):
    return svc.login_with_password(body.email, body.password, body.role)

@router.get("/me")
def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    return serialize_profile(db.get(User, principal.id))

@router.put("/profile")
def update_profile(
    body: ProfileIn,
    principal: Principal = Depends(get_current_principal),
    svc: IdentityService = Depends(get_identity_service),
):
    user = svc.update_profile(principal, body.name, body.mobile)
    return {"message": "Profile updated successfully", "user": serialize_profile(user)}
