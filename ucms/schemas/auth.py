# File: ucms/schemas/auth.py

from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from ucms.models.otp import OtpPurpose
from ucms.models.user import UserRole

class RegisterIn(BaseModel):
    # presence is checked by the identity service so every missing field
    # yields the same "All fields are required" message
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = None
    password: Optional[str] = Field(default=None, max_length=512)
    otp: Optional[str] = None

class SendOtpIn(BaseModel):
    mobile: Optional[str] = None
    purpose: Optional[OtpPurpose] = None
    role: Optional[UserRole] = None

class VerifyOtpIn(BaseModel):
    mobile: Optional[str] = None
    otp: Optional[str] = None
    role: Optional[UserRole] = None

class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=512)
    role: Optional[UserRole] = None

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int

class OtpLoginOut(BaseModel):
    email: str
    token: str

class ProfileIn(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    mobile: Optional[str] = Field(default=None, max_length=30)

class Principal(BaseModel):
    """The authenticated caller, resolved once per request."""
    id: int
    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.official, UserRole.admin)
