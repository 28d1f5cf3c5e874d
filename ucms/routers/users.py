# File: ucms/routers/users.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from ucms.core.security import get_current_principal, require_role
from ucms.db.session import get_db
from ucms.models.user import UserRole, UserStatus
from ucms.schemas.auth import Principal
from ucms.schemas.user import UserCreate, UserUpdate
from ucms.services.user_directory import UserDirectory, serialize_user

router = APIRouter(prefix="/users", tags=["users"])

def get_user_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)

@router.get("", dependencies=[Depends(require_role("admin"))])
def list_users(
    role: Optional[UserRole] = Query(default=None),
    status: Optional[UserStatus] = Query(default=None),
    search: Optional[str] = Query(default=None),
    directory: UserDirectory = Depends(get_user_directory),
):
    return directory.list(role=role, status=status, search=search)

@router.post("", status_code=201, dependencies=[Depends(require_role("admin"))])
def create_user(body: UserCreate, directory: UserDirectory = Depends(get_user_directory)):
    user, temp_password = directory.create(body)
    return {
        "message": "User created successfully",
        "user": serialize_user(user),
        "tempPassword": temp_password,
    }

@router.get("/{user_id}")
def get_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    directory: UserDirectory = Depends(get_user_directory),
):
    return directory.get(principal, user_id)

@router.patch("/{user_id}", dependencies=[Depends(require_role("admin"))])
def update_user(user_id: int, body: UserUpdate, directory: UserDirectory = Depends(get_user_directory)):
    user = directory.update(user_id, body)
    return {"message": "User updated successfully", "user": serialize_user(user)}

@router.delete("/{user_id}", dependencies=[Depends(require_role("admin"))])
def delete_user(user_id: int, directory: UserDirectory = Depends(get_user_directory)):
    directory.delete(user_id)
    return {"message": "User deleted successfully"}
