#ucms/schemas/user.py
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from ucms.models.user import UserRole, UserStatus

class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    email: EmailStr
    mobile: Optional[str] = Field(default=None, max_length=30)
    role: UserRole = UserRole.official
    department: Optional[str] = Field(default=None, max_length=120)

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    role: Optional[UserRole] = None
    department: Optional[str] = Field(default=None, max_length=120)
    status: Optional[UserStatus] = None
