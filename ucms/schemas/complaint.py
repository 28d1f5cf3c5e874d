from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from ucms.models.complaint import ComplaintStatus, EscalationLevel

Coordinate = Union[str, float, None]


class ComplaintCreate(BaseModel):
    # required-ness is enforced by ComplaintService so the first missing
    # field can be named in the error message
    title: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=120)
    subcategory: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = Field(default=None, max_length=4000)
    address: Optional[str] = Field(default=None, max_length=300)
    latitude: Coordinate = None
    longitude: Coordinate = None


class ComplaintPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[ComplaintStatus] = None
    escalation: Optional[EscalationLevel] = None
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")
    comment: Optional[str] = Field(default=None, max_length=4000)


class EscalateIn(BaseModel):
    level: EscalationLevel
    reason: str = Field(min_length=1, max_length=2000)
    department: Optional[str] = Field(default=None, max_length=120)


class CommentIn(BaseModel):
    comment: str = Field(min_length=1, max_length=4000)
