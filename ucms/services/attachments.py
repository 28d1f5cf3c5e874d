# ucms/services/attachments.py
import logging
from typing import Callable, Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ucms.core.errors import InternalError, NotFoundError, ValidationError
from ucms.models.attachment import Attachment
from ucms.models.complaint import Complaint
from ucms.schemas.auth import Principal
from ucms.services.complaints import ComplaintService
from ucms.services.storage import make_object_key, upload_file

logger = logging.getLogger(__name__)

MAX_FILES = 10
MAX_BYTES = 5 * 1024 * 1024
ALLOWED = {"image/jpeg", "image/png", "application/pdf"}


class AttachmentRegistry:
    """Stores attachment metadata; the bytes go to the storage collaborator."""

    def __init__(self, db: Session, uploader: Callable[[bytes, str, str], str] = upload_file):
        self.db = db
        self.uploader = uploader

    def upload(self, principal: Principal, complaint_id: Optional[int], files: list[UploadFile]) -> list[Attachment]:
        if not complaint_id:
            raise ValidationError("Complaint ID is required")
        files = [f for f in (files or []) if f is not None and f.filename]
        if not files:
            raise ValidationError("No files provided")

        complaint = self.db.get(Complaint, complaint_id)
        if not complaint:
            raise NotFoundError("Complaint not found or access denied")
        ComplaintService.ensure_can_view(principal, complaint)

        if len(files) > MAX_FILES:
            raise ValidationError(f"Max {MAX_FILES} files")
        payloads = []
        for f in files:
            if f.content_type not in ALLOWED:
                raise ValidationError(f"Unsupported file type: {f.content_type}")
            data = f.file.read()
            if len(data) > MAX_BYTES:
                raise ValidationError(f"{f.filename} exceeds 5MB")
            payloads.append((f.filename, f.content_type, data))

        # all metadata rows land in one commit, or none do
        attachments = []
        try:
            for name, content_type, data in payloads:
                url = self.uploader(data, content_type, make_object_key(complaint.id, name))
                row = Attachment(
                    complaint_id=complaint.id,
                    name=name,
                    content_type=content_type,
                    size=len(data),
                    url=url,
                )
                self.db.add(row)
                attachments.append(row)
            self.db.commit()
        except (SQLAlchemyError, OSError, ValueError) as e:
            self.db.rollback()
            logger.error(f"Failed to save attachments for complaint {complaint_id}: {e}", exc_info=True)
            raise InternalError("Failed to save attachment metadata")

        for row in attachments:
            self.db.refresh(row)
        return attachments
