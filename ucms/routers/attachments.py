# File: ucms/routers/attachments.py
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
from ucms.core.security import get_current_principal
from ucms.db.session import get_db
from ucms.schemas.auth import Principal
from ucms.services.attachments import AttachmentRegistry
from ucms.services.complaints import serialize_attachment

router = APIRouter(prefix="/attachments", tags=["attachments"])

def get_attachment_registry(db: Session = Depends(get_db)) -> AttachmentRegistry:
    return AttachmentRegistry(db)

@router.post("")
def upload_attachments(
    complaintId: Optional[int] = Form(None),
    files: List[UploadFile] | None = File(default=None),
    principal: Principal = Depends(get_current_principal),
    registry: AttachmentRegistry = Depends(get_attachment_registry),
):
    rows = registry.upload(principal, complaintId, files or [])
    return {
        "message": "Attachments uploaded successfully",
        "attachments": [serialize_attachment(a) for a in rows],
    }
